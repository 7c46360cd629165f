"""
Company session models for Hyrily

A company session shares one generated question set across several
candidates and ranks them once every interview is complete.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from hyrily.models.question import Question


class CandidateStatus(str, Enum):
    PENDING = "pending"
    INTERVIEWING = "interviewing"
    COMPLETED = "completed"
    SELECTED = "selected"
    REJECTED = "rejected"


class CompanySessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Candidate(BaseModel):
    """A candidate invited to a company session."""

    id: str = Field(default_factory=lambda: f"candidate-{uuid4().hex[:8]}")
    name: str
    email: str | None = None
    status: CandidateStatus = CandidateStatus.PENDING
    score: float = Field(default=0.0, ge=0, le=100)

    # Interview session run for this candidate
    interview_session_id: str | None = None

    started_at: datetime | None = None
    completed_at: datetime | None = None


class CompanySession(BaseModel):
    """An interview round created by a company."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    technology_stack: str
    candidate_count: int = Field(..., ge=1, description="Candidates expected to interview")
    positions: int = Field(default=1, ge=1, description="Candidates to select")
    status: CompanySessionStatus = CompanySessionStatus.ACTIVE

    questions: list[Question] = Field(default_factory=list)
    candidates: list[Candidate] = Field(default_factory=list)
    selected_candidate_ids: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None

    def all_interviews_finished(self) -> bool:
        """True once the expected number of candidates have all completed."""
        finished = [
            c for c in self.candidates
            if c.status in (CandidateStatus.COMPLETED, CandidateStatus.SELECTED, CandidateStatus.REJECTED)
        ]
        return len(self.candidates) >= self.candidate_count and len(finished) == len(self.candidates)
