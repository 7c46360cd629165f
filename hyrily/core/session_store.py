"""
Session persistence for Hyrily.

The orchestrator never touches storage directly; completed results are
written through a SessionRepository. The in-memory implementation is the
default (Redis or a database can sit behind the same interface).
"""

import logging
from typing import Protocol

from hyrily.models.company import CompanySession
from hyrily.models.interview import InterviewSessionRecord

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    async def get_session(self, session_id: str) -> InterviewSessionRecord | None: ...

    async def save_session(self, session: InterviewSessionRecord) -> None: ...

    async def list_sessions(self) -> list[InterviewSessionRecord]: ...

    async def delete_session(self, session_id: str) -> bool: ...

    async def get_company_session(self, session_id: str) -> CompanySession | None: ...

    async def save_company_session(self, session: CompanySession) -> None: ...

    async def list_company_sessions(self) -> list[CompanySession]: ...

    async def delete_company_session(self, session_id: str) -> bool: ...


class InMemorySessionRepository:
    """Process-local session storage."""

    def __init__(self):
        self._sessions: dict[str, InterviewSessionRecord] = {}
        self._company_sessions: dict[str, CompanySession] = {}

    # =========================================================================
    # INTERVIEW SESSIONS
    # =========================================================================

    async def get_session(self, session_id: str) -> InterviewSessionRecord | None:
        return self._sessions.get(session_id)

    async def save_session(self, session: InterviewSessionRecord) -> None:
        self._sessions[session.session_id] = session

    async def list_sessions(self) -> list[InterviewSessionRecord]:
        return sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)

    async def delete_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    # =========================================================================
    # COMPANY SESSIONS
    # =========================================================================

    async def get_company_session(self, session_id: str) -> CompanySession | None:
        return self._company_sessions.get(session_id)

    async def save_company_session(self, session: CompanySession) -> None:
        self._company_sessions[session.session_id] = session

    async def list_company_sessions(self) -> list[CompanySession]:
        return sorted(self._company_sessions.values(), key=lambda s: s.created_at, reverse=True)

    async def delete_company_session(self, session_id: str) -> bool:
        removed = self._company_sessions.pop(session_id, None)
        if removed is None:
            return False

        # Candidate interviews belong to the company session
        for candidate in removed.candidates:
            if candidate.interview_session_id:
                self._sessions.pop(candidate.interview_session_id, None)
        logger.info(f"Deleted company session {session_id}")
        return True
