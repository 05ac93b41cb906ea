from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import uuid

from exam_scoring.core.config import settings
from exam_scoring.engine.scorer import AutoScorer, get_scoring_stats, percentage, round_half_up
from exam_scoring.schemas.scoring import BatchScoreResult, Question


# Lower bound (inclusive) of each band, best first
GRADE_BANDS = [
    (90.0, "Excellent"),
    (80.0, "Good"),
    (70.0, "Average"),
    (60.0, "Pass"),
    (0.0, "Fail"),
]


def grade_band(score_percentage: float) -> str:
    for lower_bound, label in GRADE_BANDS:
        if score_percentage >= lower_bound:
            return label
    return GRADE_BANDS[-1][1]


def generate_exam_report(
    questions: Iterable[Any],
    batch_result: Any,
    candidate_name: Optional[str] = None,
    candidate_email: Optional[str] = None,
    exam_title: Optional[str] = None,
    pass_percentage: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Build the report of one graded attempt from its batch scoring result.

    The percentage is taken against the max total of every exam question,
    so unanswered questions count against the candidate.
    """
    if pass_percentage is None:
        pass_percentage = settings.PASS_PERCENTAGE

    questions = [q if isinstance(q, Question) else Question.model_validate(q) for q in questions]
    if not isinstance(batch_result, BatchScoreResult):
        batch_result = BatchScoreResult.model_validate(batch_result)

    by_id: Dict[str, Question] = {}
    for question in questions:
        by_id.setdefault(question.id, question)

    stats = get_scoring_stats(batch_result.results)

    total_score = batch_result.total_score
    max_score = batch_result.max_total_score
    score_percentage = percentage(total_score, max_score)
    grade = grade_band(score_percentage)
    status = "Pass" if score_percentage >= pass_percentage else "Fail"

    # -------------------------
    # PER QUESTION / PER TYPE
    # -------------------------
    question_breakdown: List[Dict[str, Any]] = []
    type_summary = defaultdict(lambda: {"answered": 0, "correct": 0, "score": 0.0, "max_score": 0.0})

    for result in batch_result.results:
        question = by_id.get(result.question_id)
        question_type = question.type if question else "UNKNOWN"

        question_breakdown.append({
            "question_id": result.question_id,
            "title": question.title if question else None,
            "type": question_type,
            "score": result.score,
            "max_score": result.max_score,
            "is_correct": result.is_correct,
        })

        bucket = type_summary[question_type]
        bucket["answered"] += 1
        bucket["correct"] += 1 if result.is_correct else 0
        bucket["score"] += result.score
        bucket["max_score"] += result.max_score

    unanswered = len(set(by_id) - {result.question_id for result in batch_result.results})

    # -------------------------
    # SUMMARY
    # -------------------------
    summary = [
        f"The candidate scored {total_score:g} out of {max_score:g} ({score_percentage}%).",
        f"The result is graded {grade} and marked as {status} (pass mark {pass_percentage:g}%).",
        f"{stats.correct_questions} of {stats.total_questions} answered questions were correct "
        f"({stats.accuracy}% accuracy).",
    ]
    if unanswered:
        summary.append(f"{unanswered} question(s) were left unanswered and scored zero.")

    return {
        "report_id": str(uuid.uuid4()),
        "exam_title": exam_title,
        "candidate": {
            "name": candidate_name,
            "email": candidate_email
        },
        "summary": summary,
        "scores": {
            "total_score": total_score,
            "max_score": max_score,
            "percentage": score_percentage,
            "grade": grade,
            "status": status
        },
        "stats": stats.model_dump(),
        "type_summary": dict(type_summary),
        "question_breakdown": question_breakdown,
        "engine_version": AutoScorer.ENGINE_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat()
    }


def summarize_grades(reports: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Grade distribution, average percentage and pass rate over many attempt reports."""
    reports = list(reports)
    attempts = len(reports)

    distribution = {label: 0 for _, label in GRADE_BANDS}
    passed = 0
    percentage_total = 0.0

    for report in reports:
        scores = report["scores"]
        distribution[grade_band(scores["percentage"])] += 1
        percentage_total += scores["percentage"]
        if scores["status"] == "Pass":
            passed += 1

    return {
        "attempts": attempts,
        "average_percentage": round_half_up(percentage_total / attempts, 1) if attempts else 0.0,
        "pass_rate": percentage(passed, attempts, digits=1),
        "grade_distribution": [
            {"grade": label, "count": count} for label, count in distribution.items()
        ],
    }
