"""
Report models for Hyrily

Defines the structure of the post-interview feedback report.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from hyrily.models.evaluation import ScoreScale
from hyrily.models.interview import AnswerStatus, CompletionReason


class QuestionFeedback(BaseModel):
    """Feedback for a single question."""

    question_number: int
    question_id: str
    question_text: str
    question_type: str
    category: str | None = None
    answer_text: str
    status: AnswerStatus
    score: float
    feedback: str | None = None


class InterviewReport(BaseModel):
    """Complete interview feedback report."""

    session_id: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    technology_stack: str

    # Overall
    aggregate_score: float
    score_scale: ScoreScale
    score_percentage: float = Field(..., ge=0, le=100)
    score_interpretation: str
    completion_reason: CompletionReason
    duration_seconds: float

    # Counts
    total_questions: int
    answered_count: int
    skipped_count: int

    # Qualitative
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    question_feedback: list[QuestionFeedback] = Field(default_factory=list)
