"""Request schemas validated at the HTTP boundary before reaching the services."""

import math
from datetime import datetime
from typing import Any, ClassVar, FrozenSet, List, Optional, Union

from pydantic import (
    BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator, model_validator
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from quizgrader.errors import ValidationError
from quizgrader.models.question import QuestionType


class RequestModel(BaseModel):
    """Accept camelCase (SPA) and snake_case keys; reject unknown ones."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class SubmittedAnswer(RequestModel):
    """One answered question in a submission."""
    question_id: int
    selected_options: List[int] = Field(default_factory=list)
    text_answer: Optional[str] = None


class SubmitAttemptRequest(RequestModel):
    attempt_id: int
    answers: List[SubmittedAnswer] = Field(default_factory=list)

    @field_validator("answers")
    @classmethod
    def one_answer_per_question(cls, answers):
        seen = set()
        for answer in answers:
            if answer.question_id in seen:
                raise ValueError(f"question {answer.question_id} answered more than once")
            seen.add(answer.question_id)
        return answers


class StartAttemptRequest(RequestModel):
    quiz_id: int


# JSON numbers only: booleans and numeric strings are rejected
Points = Union[StrictInt, StrictFloat]


class GradeEssayRequest(RequestModel):
    points: Points

    @field_validator("points")
    @classmethod
    def finite(cls, points):
        if not math.isfinite(points):
            raise ValueError("points must be a finite number")
        return points


class OptionCreate(RequestModel):
    text: str = Field(min_length=1)
    is_correct: bool = False
    order_index: int = 0


class OptionCreateRequest(OptionCreate):
    """Standalone option added to an existing question."""
    question_id: int


class QuestionCreate(RequestModel):
    text: str = Field(min_length=1)
    type: QuestionType
    points: Points = 1.0
    order_index: int = 0
    options: List[OptionCreate] = Field(default_factory=list)

    @field_validator("points")
    @classmethod
    def positive(cls, points):
        if not points > 0:
            raise ValueError("points must be greater than 0")
        return points

    @model_validator(mode="after")
    def essays_have_no_options(self):
        if self.type == QuestionType.ESSAY and self.options:
            raise ValueError("essay questions cannot have options")
        return self


class QuestionCreateRequest(QuestionCreate):
    """Standalone question added to an existing quiz."""
    quiz_id: int


class QuizCreate(RequestModel):
    classroom_id: int
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    instructions: str = ""
    time_limit: Optional[int] = Field(default=None, gt=0)
    due_date: Optional[datetime] = None
    is_published: bool = False
    questions: List[QuestionCreate] = Field(default_factory=list)


class UpdateRequest(RequestModel):
    """
    Partial update: only the keys present in the payload are applied.

    Keys outside `nullable` may be omitted but not sent as null.
    """
    nullable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def no_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.nullable:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self):
        return self.model_dump(exclude_unset=True)


class QuizUpdate(UpdateRequest):
    nullable: ClassVar[FrozenSet[str]] = frozenset({"time_limit", "due_date"})

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, gt=0)
    due_date: Optional[datetime] = None
    is_published: Optional[bool] = None


class QuestionUpdate(UpdateRequest):
    text: Optional[str] = Field(default=None, min_length=1)
    type: Optional[QuestionType] = None
    points: Optional[Points] = None
    order_index: Optional[int] = None

    @field_validator("points")
    @classmethod
    def positive(cls, points):
        if points is not None and not points > 0:
            raise ValueError("points must be greater than 0")
        return points


class OptionUpdate(UpdateRequest):
    text: Optional[str] = Field(default=None, min_length=1)
    is_correct: Optional[bool] = None
    order_index: Optional[int] = None


def parse(schema, payload: Any):
    """Validate `payload` against `schema`, raising the service ValidationError."""
    if payload is None:
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(f"Invalid {location}: {first['msg']}") from exc
