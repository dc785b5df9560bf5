"""
Admin-side quiz content management: categories, tiers, questions,
translations and tier payments.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from pydantic import BaseModel

from quizhub.core.exceptions.base import BadRequestError, ConflictError, NotFoundError
from quizhub.core.exceptions.handler import ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.core.service.quiz.models.content import (
    OPTIONS_PER_QUESTION, Category, NewQuestion, Question, Tier, TierSpec,
    Translation, TranslationImportSummary, UserPayment,
)
from quizhub.infra.repository.payment_repository import PaymentRepository
from quizhub.infra.repository.quiz_repository import QuizRepository
from quizhub.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)


class ImportedQuestion(BaseModel):
    """Translation for the question at `rank` inside a (category, tier) scope"""
    rank: int
    question_text: str
    options: List[str]


class ImportBlock(BaseModel):
    category_rank: int
    tier_rank: int
    questions: List[ImportedQuestion]


def _check_options(options: Sequence[str], label: str) -> None:
    if len(options) != OPTIONS_PER_QUESTION:
        raise BadRequestError(
            f"{label} must have exactly {OPTIONS_PER_QUESTION} options",
            ServiceErrorCode.INVALID_QUESTION
        )


def validate_question(question: NewQuestion, position: int) -> None:
    """Raise BadRequestError when a batch item is malformed"""
    label = f"Question {position}"
    _check_options(question.options, label)
    if not 0 <= question.correct_option_index < OPTIONS_PER_QUESTION:
        raise BadRequestError(
            f"{label} correct option index must be between 0 and {OPTIONS_PER_QUESTION - 1}",
            ServiceErrorCode.INVALID_QUESTION
        )
    for translation in question.translations:
        _check_options(translation.options, f"{label} translation '{translation.language_code}'")


class QuizContentService:

    def __init__(
        self,
        quiz_repository: QuizRepository,
        payment_repository: PaymentRepository,
        user_repository: UserRepository
    ):
        self.quiz = quiz_repository
        self.payments = payment_repository
        self.users = user_repository

    # ---- categories ----

    async def list_categories(self) -> List[Category]:
        return await self.quiz.list_categories()

    async def get_category(self, order_rank: int) -> Category:
        category = await self.quiz.get_category_by_rank(order_rank)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def create_category(self, name: str, description: Optional[str], order_rank: int) -> Category:
        taken = await self.quiz.find_category_conflict(name, order_rank)
        if taken:
            raise ConflictError(f"Category with this {taken} already exists", ServiceErrorCode.ALREADY_EXISTS)
        return await self.quiz.create_category(name, description, order_rank)

    async def update_category(self, order_rank: int, changes: Dict[str, Any]) -> Category:
        category = await self.get_category(order_rank)
        taken = await self.quiz.find_category_conflict(
            changes.get("name"), changes.get("order_rank"), exclude_id=category.id
        )
        if taken:
            raise ConflictError(f"Category with this {taken} already exists", ServiceErrorCode.ALREADY_EXISTS)
        if not changes:
            return category
        return await self.quiz.update_category(order_rank, changes)

    async def delete_category(self, order_rank: int) -> int:
        removed = await self.quiz.delete_category(order_rank)
        if removed is None:
            raise NotFoundError("Category not found")
        return removed

    # ---- tiers ----

    async def list_tiers(self) -> List[Tier]:
        return await self.quiz.list_tiers()

    async def get_tier(self, order_rank: int) -> Tier:
        tier = await self.quiz.get_tier_by_rank(order_rank)
        if tier is None:
            raise NotFoundError("Tier not found")
        return tier

    async def create_tier(self, name: str, description: Optional[str], is_paid: bool, order_rank: int) -> Tier:
        taken = await self.quiz.find_tier_conflict(name, order_rank)
        if taken:
            raise ConflictError(f"Tier with this {taken} already exists", ServiceErrorCode.ALREADY_EXISTS)
        return await self.quiz.create_tier(name, description, is_paid, order_rank)

    async def update_tier(self, order_rank: int, changes: Dict[str, Any]) -> Tier:
        tier = await self.get_tier(order_rank)
        taken = await self.quiz.find_tier_conflict(
            changes.get("name"), changes.get("order_rank"), exclude_id=tier.id
        )
        if taken:
            raise ConflictError(f"Tier with this {taken} already exists", ServiceErrorCode.ALREADY_EXISTS)
        if not changes:
            return tier
        return await self.quiz.update_tier(order_rank, changes)

    # ---- questions ----

    async def create_questions(
        self,
        category_rank: int,
        tier_spec: TierSpec,
        questions: Sequence[NewQuestion]
    ) -> Tuple[Tier, List[Question], bool]:
        """
        Validate the whole batch, then insert it atomically.
        Nothing is written when any item fails validation.
        """
        category = await self.quiz.get_category_by_rank(category_rank)
        if category is None:
            raise NotFoundError("Category not found")

        if not questions:
            raise BadRequestError("At least one question is required")
        for position, question in enumerate(questions, start=1):
            validate_question(question, position)

        return await self.quiz.create_question_batch(category.id, tier_spec, questions)

    async def list_questions(self, category_rank: int, tier_rank: int) -> List[Question]:
        category = await self.get_category(category_rank)
        tier = await self.get_tier(tier_rank)
        return await self.quiz.list_questions(category.id, tier.id)

    async def update_question(self, question_id: UUID, changes: Dict[str, Any]) -> Question:
        """Partial update; the merged options and correct index must stay consistent"""
        question = await self.quiz.get_question(question_id)
        if question is None:
            raise NotFoundError("Question not found")

        options = changes.get("options", question.options)
        correct_index = changes.get("correct_option_index", question.correct_option_index)
        if "options" in changes:
            _check_options(options, "Question")
        if not 0 <= correct_index < len(options):
            raise BadRequestError("Correct option index is out of range", ServiceErrorCode.INVALID_QUESTION)

        if not changes:
            return question
        return await self.quiz.update_question(question_id, changes)

    async def delete_question(self, question_id: UUID) -> None:
        if not await self.quiz.delete_question(question_id):
            raise NotFoundError("Question not found")

    # ---- translations ----

    async def list_translations(self, question_id: UUID) -> List[Translation]:
        if await self.quiz.get_question(question_id) is None:
            raise NotFoundError("Question not found")
        return await self.quiz.list_translations(question_id)

    async def update_translation(self, translation_id: UUID, changes: Dict[str, Any]) -> Translation:
        translation = await self.quiz.get_translation_by_id(translation_id)
        if translation is None:
            raise NotFoundError("Translation not found")
        if "options" in changes:
            _check_options(changes["options"], "Translation")
        language = changes.get("language_code")
        if language and language != translation.language_code:
            if await self.quiz.get_translation(translation.question_id, language):
                raise ConflictError("Translation for this language already exists")
        if not changes:
            return translation
        return await self.quiz.update_translation(translation_id, changes)

    async def import_translations(
        self,
        language_code: str,
        blocks: Sequence[ImportBlock]
    ) -> TranslationImportSummary:
        """
        Upsert translations keyed by (question, language).
        Unresolvable blocks and questions are reported and skipped; the rest is committed.
        """
        summary = TranslationImportSummary()

        for block in blocks:
            category = await self.quiz.get_category_by_rank(block.category_rank)
            tier = await self.quiz.get_tier_by_rank(block.tier_rank)
            if category is None or tier is None:
                summary.errors.append(f"Category {block.category_rank} / Tier {block.tier_rank} not found")
                summary.skipped += 1
                continue

            for item in block.questions:
                summary.processed += 1
                if len(item.options) != OPTIONS_PER_QUESTION:
                    summary.errors.append(
                        f"Question {item.rank} in Category {block.category_rank} / Tier {block.tier_rank} "
                        f"must have exactly {OPTIONS_PER_QUESTION} options"
                    )
                    summary.skipped += 1
                    continue

                question = await self.quiz.get_question_by_rank(category.id, tier.id, item.rank)
                if question is None:
                    summary.errors.append(f"Question {item.rank} not found")
                    summary.skipped += 1
                    continue

                created = await self.quiz.stage_translation_upsert(
                    question.id, language_code, item.question_text, item.options
                )
                if created:
                    summary.created += 1
                else:
                    summary.updated += 1

        await self.quiz.commit()

        logger.info(
            "Translations imported",
            extra={
                "language_code": language_code,
                "processed": summary.processed,
                "created": summary.created,
                "updated": summary.updated,
                "skipped": summary.skipped
            }
        )
        return summary

    # ---- payments ----

    async def record_payment(
        self,
        user_id: UUID,
        tier_id: UUID,
        amount: Decimal,
        currency: str = "usd",
        expiry_date: Optional[datetime] = None,
        is_active: bool = True
    ) -> UserPayment:
        if await self.users.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        if await self.quiz.get_tier_by_id(tier_id) is None:
            raise NotFoundError("Tier not found")
        if amount < 0:
            raise BadRequestError("Amount must not be negative")
        return await self.payments.create(user_id, tier_id, amount, currency, expiry_date, is_active)

    async def list_payments(self, user_id: UUID) -> List[UserPayment]:
        return await self.payments.list_for_user(user_id)
