"""
Question models for Hyrily
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QuestionType(str, Enum):
    """Types of interview questions."""

    TECHNICAL = "technical"              # Stack-specific knowledge
    BEHAVIORAL = "behavioral"            # Tell me about a time...
    PROBLEM_SOLVING = "problem-solving"  # Debugging, algorithmic thinking
    SYSTEM_DESIGN = "system-design"      # Architecture, scalability


class Question(BaseModel):
    """A single interview question. Immutable once presented."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique question ID within a session")
    type: QuestionType = Field(
        default=QuestionType.TECHNICAL,
        description="Question type, forwarded to the evaluator"
    )
    category: str | None = Field(
        default=None,
        description="Display label (e.g. 'Introduction', 'React Knowledge')"
    )
    text: str = Field(..., min_length=1, description="The question text")
