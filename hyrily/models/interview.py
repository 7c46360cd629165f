"""
Interview session and state models for Hyrily
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from hyrily.models.evaluation import ScoreScale, SkipPolicy
from hyrily.models.question import Question


class InputModality(str, Enum):
    """How the candidate answers."""

    TYPED = "typed"
    VOICE = "voice"


class TimingPolicy(str, Enum):
    """How turns are timed."""

    UNTIMED = "untimed"          # Candidate submits whenever ready
    TIMED = "timed"              # Per-question countdown, zero skips the question
    CONTINUOUS = "continuous"    # Auto-listen after each question, submit on silence


class InterviewPhase(str, Enum):
    """Interview state machine phases."""

    IDLE = "idle"                              # Session created, not started
    SPEAKING = "speaking"                      # Interviewer is reading the question
    AWAITING_RESPONSE = "awaiting_response"    # Waiting for the candidate
    RECORDING = "recording"                    # Capturing a spoken answer
    SCORING = "scoring"                        # Evaluating the answer
    COMPLETE = "complete"                      # All questions resolved
    CANCELLED = "cancelled"                    # Ended by the candidate, nothing emitted


TERMINAL_PHASES = {InterviewPhase.COMPLETE, InterviewPhase.CANCELLED}


class CompletionReason(str, Enum):
    """Why a session reached COMPLETE."""

    ALL_QUESTIONS = "all_questions"
    TIME_LIMIT = "time_limit"


class AnswerStatus(str, Enum):
    ANSWERED = "answered"
    SKIPPED = "skipped"


class Answer(BaseModel):
    """The single, immutable response recorded for a question."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    text: str = ""
    score: float = Field(default=0.0, ge=0)
    status: AnswerStatus = AnswerStatus.ANSWERED
    feedback: str | None = None


SKIPPED_ANSWER_TEXT = "Not attended - Time expired"


class InterviewConfig(BaseModel):
    """Parameters of one interview session."""

    modality: InputModality = InputModality.TYPED
    timing: TimingPolicy = TimingPolicy.UNTIMED
    question_time_limit_seconds: int = Field(default=60, ge=1)
    session_time_limit_seconds: int | None = Field(default=None, ge=1)
    quiet_period_seconds: float = Field(default=2.0, gt=0)
    tick_seconds: float = Field(
        default=1.0, gt=0,
        description="Wall-clock length of one countdown second"
    )
    score_scale: ScoreScale = ScoreScale.FIVE_POINT
    skip_policy: SkipPolicy = SkipPolicy.INCLUDE_AS_ZERO
    technology_stack: str = "Frontend Engineering"

    @property
    def needs_clock(self) -> bool:
        """Whether the session has anything that counts down."""
        return self.timing == TimingPolicy.TIMED or self.session_time_limit_seconds is not None


class SessionState(BaseModel):
    """Mutable orchestration state, owned by one InterviewOrchestrator."""

    phase: InterviewPhase = InterviewPhase.IDLE
    current_question_index: int = 0
    elapsed_seconds: int = 0
    question_time_remaining: int | None = None
    answers: dict[str, Answer] = Field(default_factory=dict)

    # Voice capture availability (typed input is always possible)
    voice_available: bool = True
    notice: str | None = None


class SessionResult(BaseModel):
    """Payload emitted when a session reaches COMPLETE."""

    session_id: str
    answers: list[Answer]
    aggregate_score: float
    duration_seconds: float
    completion_reason: CompletionReason
    score_scale: ScoreScale

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.answers if a.status == AnswerStatus.ANSWERED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for a in self.answers if a.status == AnswerStatus.SKIPPED)


class InterviewSessionRecord(BaseModel):
    """Stored view of an interview session."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    config: InterviewConfig
    questions: list[Question]
    phase: InterviewPhase = InterviewPhase.IDLE
    result: SessionResult | None = None

    # Company flow linkage
    company_session_id: str | None = None
    candidate_id: str | None = None

    # Timing
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def get_duration_seconds(self) -> float:
        """Get interview duration in seconds."""
        if not self.started_at:
            return 0.0
        end = self.completed_at or datetime.utcnow()
        return (end - self.started_at).total_seconds()
