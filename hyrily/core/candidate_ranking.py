"""
Candidate selection for company sessions.
"""

import logging
from datetime import datetime

from hyrily.models.company import Candidate, CandidateStatus, CompanySession, CompanySessionStatus

logger = logging.getLogger(__name__)


def rank_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Order candidates by score, best first. Ties keep join order."""
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def select_top_candidates(session: CompanySession) -> list[Candidate]:
    """
    Select the top `positions` candidates and reject the rest.

    Only valid once every expected interview has finished.

    Returns:
        The selected candidates, best first

    Raises:
        ValueError: If interviews are still outstanding
    """
    if not session.all_interviews_finished():
        raise ValueError(f"Company session {session.session_id} still has interviews in progress")

    ranked = rank_candidates(session.candidates)
    selected = ranked[:session.positions]
    selected_ids = {c.id for c in selected}

    for candidate in session.candidates:
        candidate.status = (
            CandidateStatus.SELECTED if candidate.id in selected_ids else CandidateStatus.REJECTED
        )

    session.selected_candidate_ids = [c.id for c in selected]
    session.status = CompanySessionStatus.COMPLETED
    session.completed_at = datetime.utcnow()

    logger.info(
        f"Company session {session.session_id}: selected {len(selected)} of "
        f"{len(session.candidates)} candidates"
    )
    return selected
