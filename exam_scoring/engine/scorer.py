# exam_scoring/engine/scorer.py

from typing import Any, Callable, Dict, Iterable, List, Optional, Union
import logging
import math

from pydantic import ValidationError

from exam_scoring.core.config import settings
from exam_scoring.schemas.scoring import (
    BatchScoreResult,
    Question,
    QuestionScore,
    QuestionType,
    ScoringResult,
    ScoringStats,
    UserAnswer,
)

logger = logging.getLogger(__name__)


class AutoScorer:
    """
    RULE-BASED AUTO-SCORING ENGINE.

    Grades a submitted response against a question's answer key.
    Deterministic and stateless: the same inputs always give the same result,
    and one instance can be shared between threads.

    Every question is worth either its full points or zero. There is no
    partial credit at the question level, even for multi-select and
    short-answer questions.

    Answer key encodings:
    - SINGLE_CHOICE: literal text of the correct option
    - MULTIPLE_CHOICE: delimited list of the correct option texts
    - FILL_BLANK: delimited list of accepted answers (any one matches)
    - SHORT_ANSWER: delimited list of required keywords
    """

    ENGINE_VERSION = "rule_v1.0"

    def __init__(
        self,
        short_answer_ratio: Optional[float] = None,
        delimiter: Optional[str] = None
    ):
        """
        Initialize the scorer.

        Args:
            short_answer_ratio: Share of keywords a short answer must contain
                for full credit (defaults to SHORT_ANSWER_MATCH_RATIO)
            delimiter: Separator of multi-value answer keys and responses
                (defaults to ANSWER_DELIMITER)
        """
        if short_answer_ratio is None:
            short_answer_ratio = settings.SHORT_ANSWER_MATCH_RATIO
        if delimiter is None:
            delimiter = settings.ANSWER_DELIMITER

        if short_answer_ratio < 0 or short_answer_ratio > 1:
            raise ValueError("short_answer_ratio must be between 0 and 1")
        if not delimiter:
            raise ValueError("delimiter must not be empty")

        self.short_answer_ratio = short_answer_ratio
        self.delimiter = delimiter

        self._graders: Dict[str, Callable[[str, Optional[str]], bool]] = {
            QuestionType.SINGLE_CHOICE.value: self.score_single_choice,
            QuestionType.MULTIPLE_CHOICE.value: self.score_multiple_choice,
            QuestionType.FILL_BLANK.value: self.score_fill_blank,
            QuestionType.SHORT_ANSWER.value: self.score_short_answer,
        }

    # ------------------------------------------------------------
    # Normalization helpers
    # ------------------------------------------------------------

    @staticmethod
    def _normalize_text(text: Optional[str]) -> str:
        """Trim surrounding whitespace and lowercase."""
        if text is None:
            return ""
        return text.strip().lower()

    @staticmethod
    def _is_blank(response: Optional[str]) -> bool:
        return response is None or not response.strip()

    def _split_answers(self, encoded: str) -> List[str]:
        """Split a delimited answer string into normalized entries."""
        return [self._normalize_text(part) for part in encoded.split(self.delimiter)]

    # ------------------------------------------------------------
    # Grading rules (True = full credit)
    # ------------------------------------------------------------

    def score_single_choice(self, correct_answer: str, candidate_answer: Optional[str]) -> bool:
        """Exact match of the selected option text, ignoring case and padding."""
        if self._is_blank(candidate_answer):
            return False

        expected = self._normalize_text(correct_answer)
        return bool(expected) and expected == self._normalize_text(candidate_answer)

    def score_multiple_choice(self, correct_answer: str, candidate_answer: Optional[str]) -> bool:
        """
        The selected options must be exactly the correct options, in any order.

        Subsets and supersets of the correct set score zero.
        """
        if self._is_blank(candidate_answer):
            return False

        expected = sorted(self._split_answers(correct_answer))
        selected = sorted(self._split_answers(candidate_answer))
        return expected == selected

    def score_fill_blank(self, correct_answer: str, candidate_answer: Optional[str]) -> bool:
        """Full credit when the response equals any accepted variant."""
        if self._is_blank(candidate_answer):
            return False

        accepted = self._split_answers(correct_answer)
        return self._normalize_text(candidate_answer) in accepted

    def score_short_answer(self, correct_answer: str, candidate_answer: Optional[str]) -> bool:
        """
        Keyword coverage rule.

        Each keyword is searched as a plain substring of the normalized
        response (no whole-word matching). Full credit when the share of
        keywords found reaches short_answer_ratio. Empty entries left by stray
        delimiters count as keywords that every response contains; a key made
        only of empty entries never awards credit.
        """
        if self._is_blank(candidate_answer):
            return False

        keywords = self._split_answers(correct_answer)
        if not any(keywords):
            return False

        normalized_answer = self._normalize_text(candidate_answer)
        matched = sum(1 for keyword in keywords if keyword in normalized_answer)
        match_ratio = matched / len(keywords)

        logger.debug(
            f"Short answer keywords matched {matched}/{len(keywords)} "
            f"(ratio {match_ratio:.3f}, required {self.short_answer_ratio})"
        )
        return match_ratio >= self.short_answer_ratio

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    def auto_score(self, question: Any, user_answer: Any) -> ScoringResult:
        """
        Grade one response.

        Args:
            question: Question model, mapping or ORM row
            user_answer: UserAnswer model, mapping or ORM row

        Returns:
            ScoringResult with score equal to the question points or zero.
            Unsupported question types and unreadable input score zero and
            are never correct.
        """
        try:
            question = _as_question(question)
        except ValidationError as exc:
            logger.warning(f"Unreadable question ({exc.error_count()} invalid field(s)), scoring 0")
            return ScoringResult(score=0.0, max_score=0.0, is_correct=False)

        try:
            user_answer = _as_user_answer(user_answer)
        except ValidationError as exc:
            logger.warning(
                f"Unreadable answer for question {question.id} "
                f"({exc.error_count()} invalid field(s)), scoring 0"
            )
            return ScoringResult(score=0.0, max_score=question.points, is_correct=False)

        grader = self._graders.get(question.type)
        if grader is None:
            logger.warning(
                f"Unsupported question type {question.type!r} "
                f"for question {question.id}, scoring 0"
            )
            return ScoringResult(score=0.0, max_score=question.points, is_correct=False)

        correct = grader(question.answer, user_answer.response)
        score = question.points if correct else 0.0

        logger.debug(
            f"Scored question {question.id} ({question.type}): "
            f"{score}/{question.points}"
        )

        return ScoringResult(
            score=score,
            max_score=question.points,
            is_correct=score == question.points,
        )

    def batch_score(self, questions: Iterable[Any], user_answers: Iterable[Any]) -> BatchScoreResult:
        """
        Grade every submitted answer of an attempt.

        Responses whose question is unknown get a zero placeholder with a zero
        max score instead of failing the batch, and so do unreadable answers.
        Unreadable questions are left out. The max total covers every
        readable question, answered or not.
        """
        readable: List[Question] = []
        for question in questions:
            try:
                readable.append(_as_question(question))
            except ValidationError as exc:
                logger.warning(
                    f"Skipping unreadable question {_raw_field(question, 'id')!r}: "
                    f"{exc.error_count()} invalid field(s)"
                )
        questions = readable

        by_id: Dict[str, Question] = {}
        for question in questions:
            by_id.setdefault(question.id, question)

        results: List[QuestionScore] = []
        for user_answer in user_answers:
            try:
                user_answer = _as_user_answer(user_answer)
            except ValidationError as exc:
                question_id = _raw_field(user_answer, "questionId", "question_id")
                logger.warning(
                    f"Unreadable answer for question {question_id!r} "
                    f"({exc.error_count()} invalid field(s)), scoring 0"
                )
                results.append(QuestionScore(
                    question_id="" if question_id is None else str(question_id),
                    score=0.0,
                    max_score=0.0,
                    is_correct=False
                ))
                continue

            question = by_id.get(user_answer.question_id)

            if question is None:
                logger.warning(f"No question {user_answer.question_id} for submitted answer, scoring 0")
                results.append(QuestionScore(
                    question_id=user_answer.question_id,
                    score=0.0,
                    max_score=0.0,
                    is_correct=False
                ))
                continue

            scoring = self.auto_score(question, user_answer)
            results.append(QuestionScore(question_id=user_answer.question_id, **scoring.model_dump()))

        total_score = sum(result.score for result in results)
        max_total_score = sum(question.points for question in questions)

        logger.info(
            f"Batch scored {len(results)} answers over {len(questions)} questions: "
            f"{total_score}/{max_total_score}"
        )

        return BatchScoreResult(
            total_score=total_score,
            max_total_score=max_total_score,
            results=results,
        )

    def get_scoring_stats(self, results: Iterable[Any]) -> ScoringStats:
        """Summarize a list of per-question results."""
        results = [_as_result(result) for result in results]

        total_questions = len(results)
        correct_questions = sum(1 for result in results if result.is_correct)
        total_score = sum(result.score for result in results)
        max_score = sum(result.max_score for result in results)

        return ScoringStats(
            total_questions=total_questions,
            correct_questions=correct_questions,
            total_score=total_score,
            max_score=max_score,
            accuracy=percentage(correct_questions, total_questions),
            score_percentage=percentage(total_score, max_score),
        )


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def round_half_up(value: float, digits: int = 2) -> float:
    """Round with halves going up, unlike the built-in banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def percentage(part: float, whole: float, digits: int = 2) -> float:
    """part / whole as a percentage, 0.0 when whole is zero."""
    if not whole:
        return 0.0
    return round_half_up(part / whole * 100, digits)


def _as_question(value: Any) -> Question:
    if isinstance(value, Question):
        return value
    return Question.model_validate(value)


def _as_user_answer(value: Any) -> UserAnswer:
    if isinstance(value, UserAnswer):
        return value
    return UserAnswer.model_validate(value)


def _raw_field(value: Any, *names: str) -> Any:
    """First present field of a raw mapping or attribute object, else None."""
    for name in names:
        if isinstance(value, dict):
            if value.get(name) is not None:
                return value[name]
        elif getattr(value, name, None) is not None:
            return getattr(value, name)
    return None


def _as_result(value: Any) -> Union[ScoringResult, QuestionScore]:
    if isinstance(value, (ScoringResult, QuestionScore)):
        return value
    return ScoringResult.model_validate(value)


# -------------------------------------------------------------------
# Module-level API
# -------------------------------------------------------------------

default_scorer = AutoScorer()


def auto_score(question: Any, user_answer: Any) -> ScoringResult:
    return default_scorer.auto_score(question, user_answer)


def batch_score(questions: Iterable[Any], user_answers: Iterable[Any]) -> BatchScoreResult:
    return default_scorer.batch_score(questions, user_answers)


def get_scoring_stats(results: Iterable[Any]) -> ScoringStats:
    return default_scorer.get_scoring_stats(results)
