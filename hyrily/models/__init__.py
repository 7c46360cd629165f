"""
Data models and schemas for Hyrily

Contains Pydantic models for:
- Questions and answers
- Interview configuration, state and results
- Speech capture state
- Company sessions and candidates
- Report data
"""

from hyrily.models.question import Question, QuestionType
from hyrily.models.evaluation import Evaluation, ScoreScale, SkipPolicy, normalize_score
from hyrily.models.interview import (
    Answer,
    AnswerStatus,
    CompletionReason,
    InputModality,
    InterviewConfig,
    InterviewPhase,
    InterviewSessionRecord,
    SessionResult,
    SessionState,
    TimingPolicy,
)
from hyrily.models.transcript import (
    CaptureError,
    RecognitionErrorCode,
    RecognitionResult,
    TranscriptState,
)
from hyrily.models.company import Candidate, CandidateStatus, CompanySession, CompanySessionStatus
from hyrily.models.report import InterviewReport, QuestionFeedback

__all__ = [
    # Question
    "Question",
    "QuestionType",
    # Evaluation
    "Evaluation",
    "ScoreScale",
    "SkipPolicy",
    "normalize_score",
    # Interview
    "Answer",
    "AnswerStatus",
    "CompletionReason",
    "InputModality",
    "InterviewConfig",
    "InterviewPhase",
    "InterviewSessionRecord",
    "SessionResult",
    "SessionState",
    "TimingPolicy",
    # Transcript
    "CaptureError",
    "RecognitionErrorCode",
    "RecognitionResult",
    "TranscriptState",
    # Company
    "Candidate",
    "CandidateStatus",
    "CompanySession",
    "CompanySessionStatus",
    # Report
    "InterviewReport",
    "QuestionFeedback",
]
