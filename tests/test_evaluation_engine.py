"""
Tests for answer scoring, score normalization and aggregation.
"""

import pytest

from conftest import FakeEvaluator
from hyrily.core.evaluation_engine import FALLBACK_FEEDBACK, EvaluationEngine
from hyrily.models.evaluation import ScoreScale, SkipPolicy, normalize_score
from hyrily.models.interview import Answer, AnswerStatus
from hyrily.models.question import Question, QuestionType


@pytest.fixture
def question() -> Question:
    return Question(id="q1", type=QuestionType.PROBLEM_SOLVING, text="How would you debug a memory leak?")


class TestNormalizeScore:

    def test_hundred_to_five(self) -> None:
        assert normalize_score(80, ScoreScale.HUNDRED_POINT, ScoreScale.FIVE_POINT) == pytest.approx(4.0)

    def test_five_to_hundred(self) -> None:
        assert normalize_score(3, ScoreScale.FIVE_POINT, ScoreScale.HUNDRED_POINT) == pytest.approx(60.0)

    def test_out_of_range_is_clamped(self) -> None:
        assert normalize_score(140, ScoreScale.HUNDRED_POINT, ScoreScale.HUNDRED_POINT) == 100.0
        assert normalize_score(-2, ScoreScale.FIVE_POINT, ScoreScale.FIVE_POINT) == 0.0


class TestScoreAnswer:
    """Evaluator calls and fallbacks."""

    @pytest.mark.asyncio
    async def test_evaluator_receives_question_context(self, question: Question) -> None:
        evaluator = FakeEvaluator([75])
        engine = EvaluationEngine(evaluator=evaluator, technology_stack="Backend Engineering")

        answer = await engine.score_answer(question, "Take heap snapshots")

        call = evaluator.calls[0]
        assert call["question"] == question.text
        assert call["answer"] == "Take heap snapshots"
        assert call["question_type"] == QuestionType.PROBLEM_SOLVING
        assert call["technology_stack"] == "Backend Engineering"
        assert answer.score == pytest.approx(3.75)
        assert answer.feedback == "Feedback for: Take heap snapshots"
        assert answer.status == AnswerStatus.ANSWERED

    @pytest.mark.asyncio
    async def test_no_evaluator_gives_neutral_score(self, question: Question) -> None:
        engine = EvaluationEngine(scale=ScoreScale.HUNDRED_POINT)

        answer = await engine.score_answer(question, "Some answer")

        assert answer.score == 60.0
        assert answer.feedback == FALLBACK_FEEDBACK

    @pytest.mark.asyncio
    async def test_failed_evaluation_gives_neutral_score(self, question: Question) -> None:
        engine = EvaluationEngine(evaluator=FakeEvaluator(fail=True))

        answer = await engine.score_answer(question, "Some answer")

        assert answer.score == 3.0
        assert answer.status == AnswerStatus.ANSWERED
        assert answer.text == "Some answer"


class TestAggregate:

    def _answers(self) -> list[Answer]:
        return [
            Answer(question_id="q1", text="a", score=4.0),
            Answer(question_id="q2", text="b", score=0.0, status=AnswerStatus.SKIPPED),
            Answer(question_id="q3", text="c", score=5.0),
        ]

    def test_skipped_count_as_zero(self) -> None:
        engine = EvaluationEngine(skip_policy=SkipPolicy.INCLUDE_AS_ZERO)

        assert engine.aggregate(self._answers()) == 3.0

    def test_skipped_excluded(self) -> None:
        engine = EvaluationEngine(skip_policy=SkipPolicy.EXCLUDE)

        assert engine.aggregate(self._answers()) == 4.5

    def test_all_skipped_and_excluded_is_zero(self) -> None:
        engine = EvaluationEngine(skip_policy=SkipPolicy.EXCLUDE)
        answers = [Answer(question_id="q1", score=0.0, status=AnswerStatus.SKIPPED)]

        assert engine.aggregate(answers) == 0.0

    def test_empty(self) -> None:
        assert EvaluationEngine().aggregate([]) == 0.0

    def test_rounded_to_two_places(self) -> None:
        engine = EvaluationEngine()
        answers = [
            Answer(question_id="q1", score=1.0),
            Answer(question_id="q2", score=1.0),
            Answer(question_id="q3", score=2.0),
        ]

        assert engine.aggregate(answers) == 1.33
