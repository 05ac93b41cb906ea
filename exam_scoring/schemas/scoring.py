# exam_scoring/schemas/scoring.py

from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QuestionType(str, Enum):
    """Question types the scorer knows how to grade."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    FILL_BLANK = "FILL_BLANK"
    SHORT_ANSWER = "SHORT_ANSWER"


# Ids are opaque: ints and UUIDs coming from a database are compared as text
OpaqueId = Annotated[str, BeforeValidator(str)]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _as_text(value)


# Answer keys, types and responses are read as text: a JSON 42 grades like "42",
# a null type is an unknown type
Text = Annotated[str, BeforeValidator(_as_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_as_optional_text)]


class WireModel(BaseModel):
    """
    Base for every scoring payload.

    Wire names are camelCase (questionId, maxScore, ...), attributes are
    snake_case. Either spelling is accepted on input, and ORM rows can be
    validated directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Question(WireModel):
    id: OpaqueId
    # Kept as a plain string: unknown types are graded as zero, not rejected
    type: Text
    answer: Text = ""
    points: float

    title: Optional[str] = None
    options: Optional[Any] = None


class UserAnswer(WireModel):
    question_id: OpaqueId
    response: OptionalText = None


class ScoringResult(WireModel):
    score: float
    max_score: float
    is_correct: bool


class QuestionScore(WireModel):
    question_id: OpaqueId
    score: float
    max_score: float
    is_correct: bool


class BatchScoreResult(WireModel):
    total_score: float
    max_total_score: float
    results: List[QuestionScore] = Field(default_factory=list)


class ScoringStats(WireModel):
    total_questions: int
    correct_questions: int
    total_score: float
    max_score: float
    accuracy: float
    score_percentage: float
