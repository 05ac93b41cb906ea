"""
Tests for batch grading and scoring statistics.
"""

import logging

import pytest

from exam_scoring.engine.scorer import batch_score, get_scoring_stats, percentage, round_half_up
from exam_scoring.schemas.scoring import Question, QuestionScore, UserAnswer


def _answers(**responses):
    return [UserAnswer(question_id=qid, response=response) for qid, response in responses.items()]


class TestBatchScore:

    def test_totals(self, scorer, exam_questions):
        result = scorer.batch_score(
            exam_questions,
            _answers(q1="paris", q2="B,A", q3="colr", q4="fast and reliable"),
        )

        assert [r.score for r in result.results] == [2, 3, 0, 5]
        assert result.total_score == 10
        assert result.max_total_score == 15

    def test_total_equals_sum_of_single_scores(self, scorer, exam_questions):
        answers = _answers(q1="London", q2="A,B", q3="colour", q4="fast")
        result = scorer.batch_score(exam_questions, answers)

        by_id = {q.id: q for q in exam_questions}
        expected = sum(scorer.auto_score(by_id[a.question_id], a).score for a in answers)
        assert result.total_score == expected

    def test_unanswered_questions_count_toward_max(self, scorer, exam_questions):
        result = scorer.batch_score(exam_questions, _answers(q1="Paris"))

        assert len(result.results) == 1
        assert result.total_score == 2
        assert result.max_total_score == 15

    def test_no_answers(self, scorer, exam_questions):
        result = scorer.batch_score(exam_questions, [])
        assert result.results == []
        assert result.total_score == 0
        assert result.max_total_score == 15

    def test_unknown_question_gets_zero_placeholder(self, scorer, exam_questions):
        result = scorer.batch_score(exam_questions, _answers(q1="Paris", ghost="anything"))

        placeholder = result.results[1]
        assert placeholder == QuestionScore(question_id="ghost", score=0, max_score=0, is_correct=False)
        assert result.total_score == 2
        assert result.max_total_score == 15

    def test_results_follow_answer_order(self, scorer, exam_questions):
        result = scorer.batch_score(exam_questions, _answers(q3="color", q1="Paris"))
        assert [r.question_id for r in result.results] == ["q3", "q1"]

    def test_first_question_with_an_id_wins(self, scorer):
        questions = [
            Question(id="q1", type="SINGLE_CHOICE", answer="Paris", points=2),
            Question(id="q1", type="SINGLE_CHOICE", answer="Rome", points=4),
        ]
        result = scorer.batch_score(questions, _answers(q1="Paris"))

        assert result.results[0].score == 2
        assert result.max_total_score == 6

    def test_numeric_ids_match_string_ids(self):
        result = batch_score(
            [{"id": 1, "type": "SINGLE_CHOICE", "answer": "A", "points": 1}],
            [{"questionId": "1", "response": "a"}],
        )
        assert result.results[0].is_correct is True

    def test_non_text_responses_are_graded(self, exam_questions):
        result = batch_score(
            exam_questions + [{"id": "q5", "type": "FILL_BLANK", "answer": "42", "points": 1}],
            [{"questionId": "q5", "response": 42}, {"questionId": "q1", "response": 1}],
        )

        assert [(r.question_id, r.score) for r in result.results] == [("q5", 1), ("q1", 0)]
        assert result.total_score == 1

    def test_unreadable_answer_gets_zero_result_and_batch_continues(self, scorer, exam_questions, caplog):
        answers = [
            {"response": "Paris"},
            {"question_id": "q2", "response": "A,B"},
            None,
        ]
        with caplog.at_level(logging.WARNING, logger="exam_scoring.engine.scorer"):
            result = scorer.batch_score(exam_questions, answers)

        assert [r.model_dump() for r in result.results] == [
            {"question_id": "", "score": 0, "max_score": 0, "is_correct": False},
            {"question_id": "q2", "score": 3, "max_score": 3, "is_correct": True},
            {"question_id": "", "score": 0, "max_score": 0, "is_correct": False},
        ]
        assert result.total_score == 3
        assert "Unreadable answer" in caplog.text

    def test_unreadable_question_is_left_out(self, scorer, exam_questions, caplog):
        questions = [{"id": "bad", "type": "SINGLE_CHOICE", "answer": "A", "points": "lots"}] + exam_questions

        with caplog.at_level(logging.WARNING, logger="exam_scoring.engine.scorer"):
            result = scorer.batch_score(questions, _answers(q1="Paris", bad="A"))

        assert result.total_score == 2
        assert result.max_total_score == 15
        assert result.results[1] == QuestionScore(question_id="bad", score=0, max_score=0, is_correct=False)
        assert "Skipping unreadable question 'bad'" in caplog.text

    def test_wire_shape(self, exam_questions):
        payload = batch_score(exam_questions, _answers(q1="Paris")).model_dump(by_alias=True)

        assert set(payload) == {"totalScore", "maxTotalScore", "results"}
        assert payload["results"][0] == {"questionId": "q1", "score": 2, "maxScore": 2, "isCorrect": True}


class TestScoringStats:

    def test_empty_results(self):
        stats = get_scoring_stats([])

        assert stats.total_questions == 0
        assert stats.correct_questions == 0
        assert stats.accuracy == 0
        assert stats.score_percentage == 0

    def test_summary(self, scorer, exam_questions):
        batch = scorer.batch_score(
            exam_questions,
            _answers(q1="Paris", q2="A", q3="colour"),
        )
        stats = scorer.get_scoring_stats(batch.results)

        assert stats.total_questions == 3
        assert stats.correct_questions == 2
        assert stats.total_score == 7
        assert stats.max_score == 10
        assert stats.accuracy == 66.67
        assert stats.score_percentage == 70.0

    def test_max_score_comes_from_results_only(self, scorer, exam_questions):
        batch = scorer.batch_score(exam_questions, _answers(q1="Paris"))
        stats = scorer.get_scoring_stats(batch.results)

        assert stats.max_score == 2
        assert stats.score_percentage == 100.0

    def test_placeholders_do_not_divide_by_zero(self):
        stats = get_scoring_stats([{"questionId": "ghost", "score": 0, "maxScore": 0, "isCorrect": False}])

        assert stats.total_questions == 1
        assert stats.accuracy == 0
        assert stats.score_percentage == 0

    def test_accepts_plain_mappings(self):
        stats = get_scoring_stats([
            {"score": 1, "maxScore": 1, "isCorrect": True},
            {"score": 0, "maxScore": 1, "isCorrect": False},
            {"score": 0, "maxScore": 1, "isCorrect": False},
        ])
        assert stats.accuracy == 33.33
        assert stats.model_dump(by_alias=True)["scorePercentage"] == 33.33


class TestRounding:

    @pytest.mark.parametrize("value, expected", [
        (66.666, 66.67),
        (33.333, 33.33),
        (12.5, 12.5),
        (0.125, 0.13),
        (100.0, 100.0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_percentage_guards_zero(self):
        assert percentage(5, 0) == 0.0
        assert percentage(1, 8) == 12.5
