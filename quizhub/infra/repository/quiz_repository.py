"""
Quiz content repository: categories, tiers, questions and translations
"""

import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from quizhub.core.exceptions.base import ConflictError
from quizhub.core.service.quiz.models.content import (
    Category, Tier, Question, Translation, NewQuestion, TierSpec,
)
from quizhub.core.utils.clock import ensure_utc
from quizhub.infra.models import CategoryModel, TierModel, QuestionModel, TranslationModel
from quizhub.core.logger.logger import get_logger

logger = get_logger(__name__)

MUTABLE_CATEGORY_FIELDS = frozenset({"name", "description", "order_rank"})
MUTABLE_TIER_FIELDS = frozenset({"name", "description", "is_paid", "order_rank"})
MUTABLE_QUESTION_FIELDS = frozenset({"question_text", "options", "correct_option_index"})
MUTABLE_TRANSLATION_FIELDS = frozenset({"language_code", "question_text", "options"})


def _apply(model: Any, changes: Dict[str, Any], allowed: frozenset) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Fields not updatable: {sorted(unknown)}")
    for field, value in changes.items():
        setattr(model, field, value)


class QuizRepository:
    """Repository for quiz content using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- conversions ----

    def _category_to_entity(self, model: CategoryModel) -> Category:
        return Category(
            id=model.id,
            name=model.name,
            description=model.description,
            order_rank=model.order_rank,
            created_at=ensure_utc(model.created_at)
        )

    def _tier_to_entity(self, model: TierModel) -> Tier:
        return Tier(
            id=model.id,
            name=model.name,
            description=model.description,
            is_paid=model.is_paid,
            order_rank=model.order_rank,
            created_at=ensure_utc(model.created_at)
        )

    def _translation_to_entity(self, model: TranslationModel) -> Translation:
        return Translation(
            id=model.id,
            question_id=model.question_id,
            language_code=model.language_code,
            question_text=model.question_text,
            options=list(model.options)
        )

    def _question_to_entity(
        self,
        model: QuestionModel,
        translations: Iterable[TranslationModel] = ()
    ) -> Question:
        return Question(
            id=model.id,
            question_text=model.question_text,
            options=list(model.options),
            correct_option_index=model.correct_option_index,
            category_id=model.category_id,
            tier_id=model.tier_id,
            rank=model.rank,
            created_at=ensure_utc(model.created_at),
            translations=[self._translation_to_entity(t) for t in translations]
        )

    async def _commit_or_conflict(self, conflict_message: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(conflict_message, extra={"error": str(e.orig)})
            raise ConflictError(conflict_message)

    # ---- categories ----

    async def list_categories(self) -> List[Category]:
        result = await self.session.execute(select(CategoryModel).order_by(CategoryModel.order_rank))
        return [self._category_to_entity(m) for m in result.scalars().all()]

    async def _category_model_by_rank(self, order_rank: int) -> Optional[CategoryModel]:
        result = await self.session.execute(
            select(CategoryModel).where(CategoryModel.order_rank == order_rank)
        )
        return result.scalar_one_or_none()

    async def get_category_by_rank(self, order_rank: int) -> Optional[Category]:
        model = await self._category_model_by_rank(order_rank)
        return self._category_to_entity(model) if model else None

    async def find_category_conflict(
        self,
        name: Optional[str],
        order_rank: Optional[int],
        exclude_id: Optional[UUID] = None
    ) -> Optional[str]:
        """Return which unique field ('name' or 'orderRank') is already taken"""
        checks = (("name", CategoryModel.name, name), ("orderRank", CategoryModel.order_rank, order_rank))
        for label, column, value in checks:
            if value is None:
                continue
            stmt = select(CategoryModel.id).where(column == value)
            if exclude_id is not None:
                stmt = stmt.where(CategoryModel.id != exclude_id)
            if (await self.session.execute(stmt)).first() is not None:
                return label
        return None

    async def create_category(self, name: str, description: Optional[str], order_rank: int) -> Category:
        model = CategoryModel(name=name, description=description, order_rank=order_rank)
        self.session.add(model)
        await self._commit_or_conflict("Category name or orderRank already exists")
        logger.info("Category created", extra={"category_id": str(model.id), "order_rank": order_rank})
        return self._category_to_entity(model)

    async def update_category(self, order_rank: int, changes: Dict[str, Any]) -> Optional[Category]:
        model = await self._category_model_by_rank(order_rank)
        if model is None:
            return None
        _apply(model, changes, MUTABLE_CATEGORY_FIELDS)
        await self._commit_or_conflict("Category name or orderRank already exists")
        return self._category_to_entity(model)

    async def delete_category(self, order_rank: int) -> Optional[int]:
        """
        Delete a category with its questions and their translations

        Returns:
            Number of questions removed, None when the category does not exist
        """
        model = await self._category_model_by_rank(order_rank)
        if model is None:
            return None

        try:
            question_ids = select(QuestionModel.id).where(QuestionModel.category_id == model.id)
            await self.session.execute(
                delete(TranslationModel).where(TranslationModel.question_id.in_(question_ids))
            )
            removed = await self.session.execute(
                delete(QuestionModel).where(QuestionModel.category_id == model.id)
            )
            await self.session.delete(model)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to delete category", extra={"order_rank": order_rank, "error": str(e)})
            raise

        logger.info(
            "Category deleted",
            extra={"order_rank": order_rank, "questions_removed": removed.rowcount}
        )
        return removed.rowcount

    # ---- tiers ----

    async def list_tiers(self) -> List[Tier]:
        result = await self.session.execute(select(TierModel).order_by(TierModel.order_rank))
        return [self._tier_to_entity(m) for m in result.scalars().all()]

    async def _tier_model_by_rank(self, order_rank: int) -> Optional[TierModel]:
        result = await self.session.execute(select(TierModel).where(TierModel.order_rank == order_rank))
        return result.scalar_one_or_none()

    async def get_tier_by_rank(self, order_rank: int) -> Optional[Tier]:
        model = await self._tier_model_by_rank(order_rank)
        return self._tier_to_entity(model) if model else None

    async def get_tier_by_id(self, tier_id: UUID) -> Optional[Tier]:
        model = await self.session.get(TierModel, tier_id)
        return self._tier_to_entity(model) if model else None

    async def find_tier_conflict(
        self,
        name: Optional[str],
        order_rank: Optional[int],
        exclude_id: Optional[UUID] = None
    ) -> Optional[str]:
        checks = (("name", TierModel.name, name), ("orderRank", TierModel.order_rank, order_rank))
        for label, column, value in checks:
            if value is None:
                continue
            stmt = select(TierModel.id).where(column == value)
            if exclude_id is not None:
                stmt = stmt.where(TierModel.id != exclude_id)
            if (await self.session.execute(stmt)).first() is not None:
                return label
        return None

    async def create_tier(
        self,
        name: str,
        description: Optional[str],
        is_paid: bool,
        order_rank: int
    ) -> Tier:
        model = TierModel(name=name, description=description, is_paid=is_paid, order_rank=order_rank)
        self.session.add(model)
        await self._commit_or_conflict("Tier orderRank already exists")
        logger.info("Tier created", extra={"tier_id": str(model.id), "order_rank": order_rank})
        return self._tier_to_entity(model)

    async def update_tier(self, order_rank: int, changes: Dict[str, Any]) -> Optional[Tier]:
        model = await self._tier_model_by_rank(order_rank)
        if model is None:
            return None
        _apply(model, changes, MUTABLE_TIER_FIELDS)
        await self._commit_or_conflict("Tier orderRank already exists")
        return self._tier_to_entity(model)

    # ---- questions ----

    async def _translations_for(self, question_ids: Sequence[UUID]) -> Dict[UUID, List[TranslationModel]]:
        grouped: Dict[UUID, List[TranslationModel]] = {qid: [] for qid in question_ids}
        if not question_ids:
            return grouped
        result = await self.session.execute(
            select(TranslationModel)
            .where(TranslationModel.question_id.in_(question_ids))
            .order_by(TranslationModel.language_code)
        )
        for translation in result.scalars().all():
            grouped[translation.question_id].append(translation)
        return grouped

    async def list_questions(self, category_id: UUID, tier_id: UUID) -> List[Question]:
        """Questions of a (category, tier) scope in rank order, translations attached"""
        result = await self.session.execute(
            select(QuestionModel)
            .where(QuestionModel.category_id == category_id, QuestionModel.tier_id == tier_id)
            .order_by(QuestionModel.rank)
        )
        models = result.scalars().all()
        translations = await self._translations_for([m.id for m in models])
        return [self._question_to_entity(m, translations[m.id]) for m in models]

    async def question_ids(self, category_id: UUID, tier_id: UUID) -> List[UUID]:
        result = await self.session.execute(
            select(QuestionModel.id)
            .where(QuestionModel.category_id == category_id, QuestionModel.tier_id == tier_id)
        )
        return list(result.scalars().all())

    async def get_question(self, question_id: UUID, with_translations: bool = False) -> Optional[Question]:
        model = await self.session.get(QuestionModel, question_id)
        if model is None:
            return None
        translations = (await self._translations_for([model.id]))[model.id] if with_translations else ()
        return self._question_to_entity(model, translations)

    async def get_question_by_rank(self, category_id: UUID, tier_id: UUID, rank: int) -> Optional[Question]:
        result = await self.session.execute(
            select(QuestionModel).where(
                QuestionModel.category_id == category_id,
                QuestionModel.tier_id == tier_id,
                QuestionModel.rank == rank
            )
        )
        model = result.scalar_one_or_none()
        return self._question_to_entity(model) if model else None

    async def update_question(self, question_id: UUID, changes: Dict[str, Any]) -> Optional[Question]:
        model = await self.session.get(QuestionModel, question_id)
        if model is None:
            return None
        _apply(model, changes, MUTABLE_QUESTION_FIELDS)
        await self.session.commit()
        return self._question_to_entity(model)

    async def delete_question(self, question_id: UUID) -> bool:
        model = await self.session.get(QuestionModel, question_id)
        if model is None:
            return False
        await self.session.execute(delete(TranslationModel).where(TranslationModel.question_id == question_id))
        await self.session.delete(model)
        await self.session.commit()
        logger.info("Question deleted", extra={"question_id": str(question_id)})
        return True

    async def create_question_batch(
        self,
        category_id: UUID,
        tier_spec: TierSpec,
        questions: Sequence[NewQuestion]
    ) -> Tuple[Tier, List[Question], bool]:
        """
        Insert a batch of questions with their translations in one transaction.

        The tier is looked up by rank and created when missing. Ranks continue
        from the current maximum within (category, tier). Any failure rolls back
        the whole batch, the tier creation included.

        Returns:
            (tier, created questions, whether the tier was created)
        """
        try:
            tier = await self._tier_model_by_rank(tier_spec.order_rank)
            tier_created = tier is None
            if tier_created:
                tier = TierModel(
                    id=uuid.uuid4(),
                    name=tier_spec.name,
                    description=tier_spec.description,
                    is_paid=tier_spec.is_paid,
                    order_rank=tier_spec.order_rank
                )
                self.session.add(tier)
                await self.session.flush()

            max_rank = (await self.session.execute(
                select(func.coalesce(func.max(QuestionModel.rank), 0))
                .where(QuestionModel.category_id == category_id, QuestionModel.tier_id == tier.id)
            )).scalar_one()

            created: List[Tuple[QuestionModel, List[TranslationModel]]] = []
            for offset, item in enumerate(questions, start=1):
                question = QuestionModel(
                    id=uuid.uuid4(),
                    question_text=item.question_text,
                    options=list(item.options),
                    correct_option_index=item.correct_option_index,
                    category_id=category_id,
                    tier_id=tier.id,
                    rank=max_rank + offset
                )
                self.session.add(question)
                translations = [
                    TranslationModel(
                        id=uuid.uuid4(),
                        question_id=question.id,
                        language_code=t.language_code,
                        question_text=t.question_text,
                        options=list(t.options)
                    )
                    for t in item.translations
                ]
                created.append((question, translations))

            # Questions first so translation foreign keys resolve
            await self.session.flush()
            for _, translations in created:
                self.session.add_all(translations)
            await self.session.flush()

            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Question batch rolled back on constraint violation",
                extra={"category_id": str(category_id), "error": str(e.orig)}
            )
            raise ConflictError("Question batch conflicts with existing data")

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Question batch rolled back",
                extra={"category_id": str(category_id), "error": str(e)}
            )
            raise

        logger.info(
            "Question batch created",
            extra={
                "category_id": str(category_id),
                "tier_id": str(tier.id),
                "tier_created": tier_created,
                "questions": len(created)
            }
        )
        return (
            self._tier_to_entity(tier),
            [self._question_to_entity(q, t) for q, t in created],
            tier_created
        )

    # ---- translations ----

    async def list_translations(self, question_id: UUID) -> List[Translation]:
        return [
            self._translation_to_entity(t)
            for t in (await self._translations_for([question_id]))[question_id]
        ]

    async def get_translation(self, question_id: UUID, language_code: str) -> Optional[Translation]:
        result = await self.session.execute(
            select(TranslationModel).where(
                TranslationModel.question_id == question_id,
                TranslationModel.language_code == language_code
            )
        )
        model = result.scalar_one_or_none()
        return self._translation_to_entity(model) if model else None

    async def get_translation_by_id(self, translation_id: UUID) -> Optional[Translation]:
        model = await self.session.get(TranslationModel, translation_id)
        return self._translation_to_entity(model) if model else None

    async def update_translation(self, translation_id: UUID, changes: Dict[str, Any]) -> Optional[Translation]:
        model = await self.session.get(TranslationModel, translation_id)
        if model is None:
            return None
        _apply(model, changes, MUTABLE_TRANSLATION_FIELDS)
        await self._commit_or_conflict("Translation for this language already exists")
        return self._translation_to_entity(model)

    async def stage_translation_upsert(
        self,
        question_id: UUID,
        language_code: str,
        question_text: str,
        options: List[str]
    ) -> bool:
        """
        Insert or overwrite the (question, language) translation without committing

        Returns:
            True when a new row was staged, False when an existing one was updated
        """
        result = await self.session.execute(
            select(TranslationModel).where(
                TranslationModel.question_id == question_id,
                TranslationModel.language_code == language_code
            )
        )
        model = result.scalar_one_or_none()
        if model is None:
            self.session.add(TranslationModel(
                question_id=question_id,
                language_code=language_code,
                question_text=question_text,
                options=list(options)
            ))
            await self.session.flush()
            return True

        model.question_text = question_text
        model.options = list(options)
        return False

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
