from collections.abc import Mapping
from typing import Any, Iterable, List, Optional
import logging

from pydantic import ValidationError

from exam_scoring.engine.scorer import AutoScorer, default_scorer
from exam_scoring.schemas.rescore import RescoreOutcome, RescoreSummary, StoredAnswer
from exam_scoring.schemas.scoring import UserAnswer

logger = logging.getLogger(__name__)


def _record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("id")
    return getattr(record, "id", None)


class RescoreService:
    @staticmethod
    def rescore_answers(
        answers: Iterable[Any],
        scorer: Optional[AutoScorer] = None,
    ) -> RescoreSummary:
        """
        Re-grade stored answers against their question's current answer key.

        Nothing is written back: the caller persists each outcome's new_score.
        Records that cannot be read as a stored answer are logged and skipped.
        """
        scorer = scorer or default_scorer

        results: List[RescoreOutcome] = []
        skipped = 0

        for record in answers:
            try:
                stored = StoredAnswer.model_validate(record)
            except ValidationError as exc:
                skipped += 1
                logger.error(f"Skipping answer {_record_id(record)}: {exc.error_count()} invalid field(s)")
                continue

            scoring = scorer.auto_score(
                stored.question,
                UserAnswer(question_id=stored.question_id, response=stored.response),
            )

            results.append(RescoreOutcome(
                answer_id=stored.id,
                question_id=stored.question_id,
                question_title=stored.question.title,
                question_type=stored.question.type,
                user_answer=stored.response,
                correct_answer=stored.question.answer,
                old_score=stored.score,
                new_score=scoring.score,
                is_correct=scoring.is_correct,
                changed=stored.score != scoring.score,
            ))

        changed = sum(1 for outcome in results if outcome.changed)
        logger.info(f"Rescored {len(results)} answers ({changed} changed, {skipped} skipped)")

        return RescoreSummary(
            rescored=len(results),
            changed=changed,
            skipped=skipped,
            results=results,
        )
