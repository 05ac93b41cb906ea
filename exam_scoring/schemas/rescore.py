# exam_scoring/schemas/rescore.py

from typing import List, Optional

from pydantic import Field

from exam_scoring.schemas.scoring import OpaqueId, OptionalText, Question, WireModel


class StoredAnswer(WireModel):
    """A previously graded answer, as loaded by the persistence layer."""
    id: OpaqueId
    question_id: OpaqueId
    response: OptionalText = None
    score: Optional[float] = None
    question: Question


class RescoreOutcome(WireModel):
    answer_id: str
    question_id: str
    question_title: Optional[str] = None
    question_type: str
    user_answer: Optional[str] = None
    correct_answer: str
    old_score: Optional[float] = None
    new_score: float
    is_correct: bool
    changed: bool


class RescoreSummary(WireModel):
    rescored: int
    changed: int
    skipped: int
    results: List[RescoreOutcome] = Field(default_factory=list)
