"""
Input DTOs for quiz content and delivery endpoints.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from quizhub.core.service.quiz.content_service import ImportBlock, ImportedQuestion
from quizhub.core.service.quiz.models.content import NewQuestion, NewTranslation, TierSpec


def _columns(dto: BaseModel, mapping: Dict[str, str]) -> Dict[str, Any]:
    """Explicitly set DTO fields renamed to their column names"""
    return {mapping[field]: value for field, value in dto.model_dump(exclude_unset=True).items()}


class PatchDto(BaseModel):
    """
    Partial update body. Omitted fields stay untouched; an explicit null is
    only accepted for the fields that may be cleared.
    """

    model_config = ConfigDict(extra="forbid")

    clearable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        nulled = sorted(
            field for field in self.model_fields_set
            if getattr(self, field) is None and field not in self.clearable
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


# ---- categories / tiers ----

class CategoryCreateDto(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    orderRank: int = Field(..., ge=1)


class CategoryUpdateDto(PatchDto):
    clearable: ClassVar[Tuple[str, ...]] = ("description",)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    orderRank: Optional[int] = Field(None, ge=1)

    def to_changes(self) -> Dict[str, Any]:
        return _columns(self, {"name": "name", "description": "description", "orderRank": "order_rank"})


class TierCreateDto(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    isPaid: bool = False
    orderRank: int = Field(..., ge=1)

    def to_spec(self) -> TierSpec:
        return TierSpec(
            name=self.name,
            description=self.description,
            is_paid=self.isPaid,
            order_rank=self.orderRank
        )


class TierUpdateDto(PatchDto):
    clearable: ClassVar[Tuple[str, ...]] = ("description",)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    isPaid: Optional[bool] = None
    orderRank: Optional[int] = Field(None, ge=1)

    def to_changes(self) -> Dict[str, Any]:
        return _columns(self, {
            "name": "name", "description": "description",
            "isPaid": "is_paid", "orderRank": "order_rank",
        })


# ---- questions ----

class TranslationItemDto(BaseModel):
    languageCode: str = Field(..., min_length=2, max_length=8)
    questionText: str = Field(..., min_length=1, validation_alias=AliasChoices("questionText", "question"))
    options: List[str]


class QuestionItemDto(BaseModel):
    """Option count and index bounds are checked by the service so the whole batch is rejected at once."""

    questionText: str = Field(..., min_length=1, validation_alias=AliasChoices("questionText", "question"))
    options: List[str]
    correctOptionIndex: int = Field(..., validation_alias=AliasChoices("correctOptionIndex", "correct_index"))
    translations: List[TranslationItemDto] = Field(default_factory=list)

    def to_new_question(self) -> NewQuestion:
        return NewQuestion(
            question_text=self.questionText,
            options=self.options,
            correct_option_index=self.correctOptionIndex,
            translations=[
                NewTranslation(language_code=t.languageCode, question_text=t.questionText, options=t.options)
                for t in self.translations
            ]
        )


class CreateQuestionsRequestDto(BaseModel):
    categoryOrderRank: int = Field(..., ge=1)
    tier: TierCreateDto
    questions: List[QuestionItemDto]


class QuestionUpdateDto(PatchDto):
    questionText: Optional[str] = Field(None, min_length=1)
    options: Optional[List[str]] = None
    correctOptionIndex: Optional[int] = None

    def to_changes(self) -> Dict[str, Any]:
        return _columns(self, {
            "questionText": "question_text",
            "options": "options",
            "correctOptionIndex": "correct_option_index",
        })


class TranslationUpdateDto(PatchDto):
    languageCode: Optional[str] = Field(None, min_length=2, max_length=8)
    questionText: Optional[str] = Field(None, min_length=1)
    options: Optional[List[str]] = None

    def to_changes(self) -> Dict[str, Any]:
        return _columns(self, {
            "languageCode": "language_code",
            "questionText": "question_text",
            "options": "options",
        })


# ---- translation import ----

class TranslationImportQuestionDto(BaseModel):
    questionId: int = Field(..., description="Rank of the question inside its category and tier")
    questionText: str = Field(..., min_length=1)
    options: List[str]


class TranslationImportBlockDto(BaseModel):
    category: int = Field(..., description="Category orderRank")
    tier: int = Field(..., description="Tier orderRank")
    questions: List[TranslationImportQuestionDto] = Field(default_factory=list)


class TranslationImportRequestDto(BaseModel):
    languageCode: str = Field(..., min_length=2, max_length=8)
    translations: List[TranslationImportBlockDto]

    @field_validator("translations", mode="before")
    @classmethod
    def parse_json_string(cls, v):
        # Spreadsheet exports post the blocks as a JSON string
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                raise ValueError("translations must be a list or a JSON encoded list")
        return v

    def to_blocks(self) -> List[ImportBlock]:
        return [
            ImportBlock(
                category_rank=block.category,
                tier_rank=block.tier,
                questions=[
                    ImportedQuestion(rank=q.questionId, question_text=q.questionText, options=q.options)
                    for q in block.questions
                ]
            )
            for block in self.translations
        ]


# ---- payments ----

class UserPaymentCreateDto(BaseModel):
    userId: UUID
    tierId: UUID
    amount: Decimal = Field(..., ge=0)
    currency: str = Field("usd", min_length=3, max_length=10)
    expiryDate: Optional[datetime] = None
    isActive: bool = True


# ---- delivery ----

class SubmitAnswerRequestDto(BaseModel):
    questionId: UUID
    selectedOptionIndex: int = Field(..., ge=0)


class CompleteTierRequestDto(BaseModel):
    tierId: UUID
    totalCorrectAnswers: int = Field(..., ge=0)
    totalQuestions: int = Field(..., ge=0)


class AddPointsRequestDto(BaseModel):
    points: int = Field(..., ge=0)
    dailyTaskId: Optional[str] = Field(None, max_length=100)
    reason: Optional[str] = Field(None, max_length=255)

    @field_validator("dailyTaskId", mode="before")
    @classmethod
    def coerce_task_id(cls, v):
        if isinstance(v, int):
            return str(v)
        return v
