"""
Evaluation Engine for Hyrily

Handles per-answer scoring and the session aggregate.
Works in conjunction with an external evaluator (the AI Reasoning Layer)
and treats it as best-effort: a failed evaluation still yields a score.
"""

import logging
from typing import Iterable, Protocol

from hyrily.models.evaluation import Evaluation, ScoreScale, SkipPolicy, normalize_score
from hyrily.models.interview import Answer, AnswerStatus
from hyrily.models.question import Question, QuestionType

logger = logging.getLogger(__name__)


FALLBACK_FEEDBACK = "Answer recorded. Detailed feedback is unavailable right now."


class AnswerEvaluator(Protocol):
    async def evaluate_answer(
        self,
        question: str,
        answer: str,
        question_type: QuestionType,
        technology_stack: str,
    ) -> Evaluation: ...


class EvaluationEngine:
    """
    Scoring boundary between the orchestrator and the evaluator.

    Responsibilities:
    - Normalize evaluator scores into the session's scale
    - Fall back to the scale's neutral score when evaluation fails
    - Compute the aggregate score under the configured skip policy
    """

    def __init__(
        self,
        evaluator: AnswerEvaluator | None = None,
        scale: ScoreScale = ScoreScale.FIVE_POINT,
        skip_policy: SkipPolicy = SkipPolicy.INCLUDE_AS_ZERO,
        technology_stack: str = "",
    ):
        """
        Initialize evaluation engine.

        Args:
            evaluator: External answer evaluator (optional)
            scale: Scale every recorded score is expressed in
            skip_policy: Whether skipped answers count as zero in the aggregate
            technology_stack: Context forwarded to the evaluator
        """
        self.evaluator = evaluator
        self.scale = scale
        self.skip_policy = skip_policy
        self.technology_stack = technology_stack

    # =========================================================================
    # ANSWER SCORING
    # =========================================================================

    async def score_answer(self, question: Question, text: str) -> Answer:
        """
        Score one answer. Never raises for evaluator failures.

        Returns:
            An answered Answer with a score on `self.scale`
        """
        if self.evaluator is None:
            return self._fallback_answer(question, text)

        try:
            evaluation = await self.evaluator.evaluate_answer(
                question=question.text,
                answer=text,
                question_type=question.type,
                technology_stack=self.technology_stack,
            )
        except Exception as e:
            logger.warning(f"Evaluation failed for question {question.id}, using neutral score: {e}")
            return self._fallback_answer(question, text)

        score = normalize_score(evaluation.score, evaluation.scale, self.scale)
        logger.info(f"Question {question.id} scored {score:.2f}/{self.scale.max_score:g}")

        return Answer(
            question_id=question.id,
            text=text,
            score=score,
            status=AnswerStatus.ANSWERED,
            feedback=evaluation.feedback or None,
        )

    def _fallback_answer(self, question: Question, text: str) -> Answer:
        return Answer(
            question_id=question.id,
            text=text,
            score=self.scale.neutral_score,
            status=AnswerStatus.ANSWERED,
            feedback=FALLBACK_FEEDBACK,
        )

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def aggregate(self, answers: Iterable[Answer]) -> float:
        """
        Mean score over the answers counted by the skip policy.

        Returns 0.0 when nothing is countable.
        """
        if self.skip_policy == SkipPolicy.EXCLUDE:
            counted = [a.score for a in answers if a.status == AnswerStatus.ANSWERED]
        else:
            counted = [a.score for a in answers]

        if not counted:
            return 0.0
        return round(sum(counted) / len(counted), 2)
