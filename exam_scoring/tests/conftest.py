import pytest

from exam_scoring.engine.scorer import AutoScorer
from exam_scoring.schemas.scoring import Question, UserAnswer


@pytest.fixture
def scorer():
    return AutoScorer(short_answer_ratio=0.6, delimiter=",")


@pytest.fixture
def make_question():
    def _make(question_type, answer, points=5, question_id="q1", title=None):
        return Question(id=question_id, type=question_type, answer=answer, points=points, title=title)
    return _make


@pytest.fixture
def make_answer():
    def _make(response, question_id="q1"):
        return UserAnswer(question_id=question_id, response=response)
    return _make


@pytest.fixture
def exam_questions():
    """A small mixed exam worth 15 points."""
    return [
        Question(id="q1", type="SINGLE_CHOICE", answer="Paris", points=2, title="Capital of France"),
        Question(id="q2", type="MULTIPLE_CHOICE", answer="A,B", points=3, title="Pick the vowels"),
        Question(id="q3", type="FILL_BLANK", answer="color,colour", points=5, title="Spell it"),
        Question(id="q4", type="SHORT_ANSWER", answer="fast,reliable,scalable", points=5, title="Describe it"),
    ]
