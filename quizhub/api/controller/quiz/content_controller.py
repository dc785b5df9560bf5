"""
Quiz content controller: categories, tiers, questions, translations and
tier payments. Admin only, except the category and tier listings which any
signed-in principal can read.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from quizhub.api.controller.quiz.dto.input_dto import (
    CategoryCreateDto, CategoryUpdateDto, CreateQuestionsRequestDto, QuestionUpdateDto,
    TierCreateDto, TierUpdateDto, TranslationImportRequestDto, TranslationUpdateDto,
    UserPaymentCreateDto,
)
from quizhub.api.controller.quiz.dto.output_dto import (
    CategoryDto, DeletedCategoryDto, QuestionBatchDto, QuestionDto, TierDto,
    TranslationDto, TranslationImportSummaryDto, UserPaymentDto,
)
from quizhub.api.middleware.authentication.jwt_bearer import get_current_admin, get_current_principal
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_quiz_content_service
from quizhub.core.service.quiz.content_service import QuizContentService

router = APIRouter(prefix="/quiz", tags=["Quiz Content"])

admin_only = [Depends(get_current_admin)]


# ---- categories ----

@router.get(
    "/categories",
    response_model=ApiResponse[List[CategoryDto]],
    dependencies=[Depends(get_current_principal)]
)
async def list_categories(content_service: QuizContentService = Depends(get_quiz_content_service)):
    categories = await content_service.list_categories()
    return ok([CategoryDto.from_entity(c) for c in categories], "Categories fetched successfully")


@router.post(
    "/categories",
    response_model=ApiResponse[CategoryDto],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only
)
async def create_category(
    request: CategoryCreateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    category = await content_service.create_category(request.name, request.description, request.orderRank)
    return ok(CategoryDto.from_entity(category), "Category created successfully")


@router.get("/categories/{order_rank}", response_model=ApiResponse[CategoryDto], dependencies=admin_only)
async def get_category(order_rank: int, content_service: QuizContentService = Depends(get_quiz_content_service)):
    category = await content_service.get_category(order_rank)
    return ok(CategoryDto.from_entity(category), "Category fetched successfully")


@router.patch("/categories/{order_rank}", response_model=ApiResponse[CategoryDto], dependencies=admin_only)
async def update_category(
    order_rank: int,
    request: CategoryUpdateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    category = await content_service.update_category(order_rank, request.to_changes())
    return ok(CategoryDto.from_entity(category), "Category updated successfully")


@router.delete("/categories/{order_rank}", response_model=ApiResponse[DeletedCategoryDto], dependencies=admin_only)
async def delete_category(order_rank: int, content_service: QuizContentService = Depends(get_quiz_content_service)):
    """Deletes the category together with its questions and their translations."""
    removed = await content_service.delete_category(order_rank)
    return ok(DeletedCategoryDto(orderRank=order_rank, deletedQuestions=removed), "Category deleted successfully")


# ---- tiers ----

@router.get(
    "/tiers",
    response_model=ApiResponse[List[TierDto]],
    dependencies=[Depends(get_current_principal)]
)
async def list_tiers(content_service: QuizContentService = Depends(get_quiz_content_service)):
    tiers = await content_service.list_tiers()
    return ok([TierDto.from_entity(t) for t in tiers], "Tiers fetched successfully")


@router.post(
    "/tiers",
    response_model=ApiResponse[TierDto],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only
)
async def create_tier(request: TierCreateDto, content_service: QuizContentService = Depends(get_quiz_content_service)):
    tier = await content_service.create_tier(request.name, request.description, request.isPaid, request.orderRank)
    return ok(TierDto.from_entity(tier), "Tier created successfully")


@router.get("/tiers/{order_rank}", response_model=ApiResponse[TierDto], dependencies=admin_only)
async def get_tier(order_rank: int, content_service: QuizContentService = Depends(get_quiz_content_service)):
    tier = await content_service.get_tier(order_rank)
    return ok(TierDto.from_entity(tier), "Tier fetched successfully")


@router.patch("/tiers/{order_rank}", response_model=ApiResponse[TierDto], dependencies=admin_only)
async def update_tier(
    order_rank: int,
    request: TierUpdateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    tier = await content_service.update_tier(order_rank, request.to_changes())
    return ok(TierDto.from_entity(tier), "Tier updated successfully")


# ---- questions ----

@router.post(
    "/questions",
    response_model=ApiResponse[QuestionBatchDto],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only
)
async def create_questions(
    request: CreateQuestionsRequestDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    """
    Create a batch of questions for a category and tier.

    The tier is looked up by orderRank and created when missing. The batch is
    validated up front and written in a single transaction.
    """
    tier, questions, tier_created = await content_service.create_questions(
        request.categoryOrderRank,
        request.tier.to_spec(),
        [q.to_new_question() for q in request.questions]
    )
    return ok(
        QuestionBatchDto(
            tier=TierDto.from_entity(tier),
            tierCreated=tier_created,
            questions=[QuestionDto.from_entity(q) for q in questions]
        ),
        f"{len(questions)} questions created successfully"
    )


@router.get(
    "/questions/{category_rank}/{tier_rank}",
    response_model=ApiResponse[List[QuestionDto]],
    dependencies=admin_only
)
async def list_questions(
    category_rank: int,
    tier_rank: int,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    questions = await content_service.list_questions(category_rank, tier_rank)
    return ok([QuestionDto.from_entity(q) for q in questions], "Questions fetched successfully")


@router.patch("/questions/{question_id}", response_model=ApiResponse[QuestionDto], dependencies=admin_only)
async def update_question(
    question_id: UUID,
    request: QuestionUpdateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    question = await content_service.update_question(question_id, request.to_changes())
    return ok(QuestionDto.from_entity(question), "Question updated successfully")


@router.delete("/questions/{question_id}", response_model=ApiResponse[None], dependencies=admin_only)
async def delete_question(question_id: UUID, content_service: QuizContentService = Depends(get_quiz_content_service)):
    await content_service.delete_question(question_id)
    return ok(message="Question deleted successfully")


# ---- translations ----

@router.get(
    "/questions/{question_id}/translations",
    response_model=ApiResponse[List[TranslationDto]],
    dependencies=admin_only
)
async def list_translations(
    question_id: UUID,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    translations = await content_service.list_translations(question_id)
    return ok([TranslationDto.from_entity(t) for t in translations], "Translations fetched successfully")


@router.patch("/translation/{translation_id}", response_model=ApiResponse[TranslationDto], dependencies=admin_only)
async def update_translation(
    translation_id: UUID,
    request: TranslationUpdateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    translation = await content_service.update_translation(translation_id, request.to_changes())
    return ok(TranslationDto.from_entity(translation), "Translation updated successfully")


@router.post(
    "/translations/import",
    response_model=ApiResponse[TranslationImportSummaryDto],
    dependencies=admin_only
)
async def import_translations(
    request: TranslationImportRequestDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    """
    Bulk upsert translations for one language.

    Blocks address questions by category orderRank, tier orderRank and the
    question's rank inside that pair. Unmatched entries are listed in `errors`
    and skipped; everything else is saved.
    """
    summary = await content_service.import_translations(request.languageCode, request.to_blocks())
    return ok(TranslationImportSummaryDto.from_summary(summary), "Translations imported")


# ---- payments ----

@router.post(
    "/payments",
    response_model=ApiResponse[UserPaymentDto],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only
)
async def record_payment(
    request: UserPaymentCreateDto,
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    payment = await content_service.record_payment(
        user_id=request.userId,
        tier_id=request.tierId,
        amount=request.amount,
        currency=request.currency,
        expiry_date=request.expiryDate,
        is_active=request.isActive
    )
    return ok(UserPaymentDto.from_entity(payment), "Payment recorded successfully")


@router.get("/payments", response_model=ApiResponse[List[UserPaymentDto]], dependencies=admin_only)
async def list_payments(
    userId: UUID = Query(..., description="User whose payments are listed"),
    content_service: QuizContentService = Depends(get_quiz_content_service)
):
    payments = await content_service.list_payments(userId)
    return ok([UserPaymentDto.from_entity(p) for p in payments], "Payments fetched successfully")
