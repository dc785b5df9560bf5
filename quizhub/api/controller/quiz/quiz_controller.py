"""
Player quiz endpoints: random question, answer submission, tier completion,
daily-task points and progress.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from quizhub.api.controller.auth.dto.output_dto import UserDto
from quizhub.api.controller.quiz.dto.input_dto import (
    AddPointsRequestDto, CompleteTierRequestDto, SubmitAnswerRequestDto,
)
from quizhub.api.controller.quiz.dto.output_dto import (
    AnswerResultDto, PlayerQuestionDto, PointsGrantDto, TierCompletionDto, UserProgressDto,
)
from quizhub.api.middleware.authentication.jwt_bearer import get_current_user, subject_id
from quizhub.api.models.response_models import ApiResponse, ok
from quizhub.core.dependencies import get_quiz_delivery_service
from quizhub.core.service.auth.models.token import TokenPayload
from quizhub.core.service.quiz.delivery_service import QuizDeliveryService

router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.get("/question", response_model=ApiResponse[PlayerQuestionDto])
async def get_question(
    categoryId: UUID = Query(...),
    tierId: UUID = Query(...),
    token: TokenPayload = Depends(get_current_user),
    delivery_service: QuizDeliveryService = Depends(get_quiz_delivery_service)
):
    """
    Random question from the category and tier, in the player's language when
    a translation exists. Paid tiers answer 403 PAYMENT_REQUIRED without an
    active payment.
    """
    view = await delivery_service.get_random_question(subject_id(token), categoryId, tierId)
    return ok(PlayerQuestionDto.from_view(view), "Question fetched successfully")


@router.post("/submit-answer", response_model=ApiResponse[AnswerResultDto])
async def submit_answer(
    request: SubmitAnswerRequestDto,
    token: TokenPayload = Depends(get_current_user),
    delivery_service: QuizDeliveryService = Depends(get_quiz_delivery_service)
):
    result = await delivery_service.submit_answer(subject_id(token), request.questionId, request.selectedOptionIndex)
    message = "Correct answer! Points added." if result.is_correct else "Incorrect answer."
    return ok(AnswerResultDto.from_result(result), message)


@router.post("/complete-tier", response_model=ApiResponse[TierCompletionDto])
async def complete_tier(
    request: CompleteTierRequestDto,
    token: TokenPayload = Depends(get_current_user),
    delivery_service: QuizDeliveryService = Depends(get_quiz_delivery_service)
):
    result = await delivery_service.complete_tier(
        subject_id(token), request.tierId, request.totalCorrectAnswers, request.totalQuestions
    )
    return ok(TierCompletionDto.from_result(result), f"Tier completed! {result.bonus_points} bonus points awarded.")


@router.post("/add-points", response_model=ApiResponse[PointsGrantDto])
async def add_points(
    request: AddPointsRequestDto,
    token: TokenPayload = Depends(get_current_user),
    delivery_service: QuizDeliveryService = Depends(get_quiz_delivery_service)
):
    """A `dailyTaskId` can be credited once per UTC day; repeats answer 409."""
    result = await delivery_service.add_points(
        subject_id(token), request.points, request.dailyTaskId, request.reason
    )
    return ok(PointsGrantDto.from_result(result), "Points added successfully")


@router.get("/user-progress", response_model=ApiResponse[UserProgressDto])
async def user_progress(
    token: TokenPayload = Depends(get_current_user),
    delivery_service: QuizDeliveryService = Depends(get_quiz_delivery_service)
):
    progress = await delivery_service.get_user_progress(subject_id(token))
    return ok(
        UserProgressDto(
            user=UserDto.from_entity(progress["user"]),
            totalQuizzes=progress["total_quizzes"],
            totalScore=progress["total_score"],
            averageScore=progress["average_score"],
            todayActivities=progress["today_activities"]
        ),
        "User progress fetched successfully"
    )
