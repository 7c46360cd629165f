"""
Evaluation models for Hyrily

Defines score scales and the shape of a single answer evaluation.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ScoreScale(str, Enum):
    """Score scales used across interview flows."""

    FIVE_POINT = "0-5"        # Practice voice/chat flows
    HUNDRED_POINT = "0-100"   # Company flows and the Gemini evaluator

    @property
    def max_score(self) -> float:
        return 5.0 if self is ScoreScale.FIVE_POINT else 100.0

    @property
    def neutral_score(self) -> float:
        """Score assigned when the evaluator is unavailable."""
        return 3.0 if self is ScoreScale.FIVE_POINT else 60.0


class SkipPolicy(str, Enum):
    """How skipped answers count towards the aggregate score."""

    INCLUDE_AS_ZERO = "include_as_zero"
    EXCLUDE = "exclude"


def normalize_score(score: float, source: ScoreScale, target: ScoreScale) -> float:
    """Convert a score between scales, clamping it into the source range first."""
    clamped = min(source.max_score, max(0.0, float(score)))
    if source is target:
        return clamped
    return clamped / source.max_score * target.max_score


class Evaluation(BaseModel):
    """Result of evaluating one answer, on the evaluator's own scale."""

    score: float = Field(..., ge=0)
    feedback: str = ""
    scale: ScoreScale = ScoreScale.HUNDRED_POINT
