"""
Company API endpoints

A company creates an interview round for a technology stack; candidates
join it and each takes the same question set. Once everyone has finished,
the best candidates are selected.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from hyrily.api.dependencies import get_session_manager
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.models.company import Candidate, CandidateStatus, CompanySession, CompanySessionStatus
from hyrily.models.interview import InputModality, TimingPolicy

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateCompanySessionRequest(BaseModel):
    """Request model for a new company session."""
    technology_stack: str = Field(..., min_length=1)
    candidate_count: int = Field(..., ge=1, le=100)
    positions: int = Field(default=1, ge=1)
    question_count: int | None = Field(default=None, ge=1, le=30)


class JoinRequest(BaseModel):
    """Request model for a candidate joining a company session."""
    name: str = Field(..., min_length=1)
    email: str | None = None
    modality: InputModality = InputModality.TYPED
    timing: TimingPolicy = TimingPolicy.UNTIMED


class JoinResponse(BaseModel):
    candidate: Candidate
    interview_session_id: str
    total_questions: int


class RankedCandidate(BaseModel):
    rank: int
    candidate_id: str
    name: str
    score: float
    status: CandidateStatus


class RankingResponse(BaseModel):
    session_id: str
    status: CompanySessionStatus
    positions: int
    candidates_finished: int
    candidate_count: int
    selected_candidate_ids: list[str]
    ranking: list[RankedCandidate]


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/sessions", response_model=CompanySession)
async def create_company_session(
    request: CreateCompanySessionRequest,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> CompanySession:
    """Create a company session and generate its shared question set."""
    try:
        return await manager.create_company_session(
            technology_stack=request.technology_stack,
            candidate_count=request.candidate_count,
            positions=request.positions,
            question_count=request.question_count,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/sessions", response_model=list[CompanySession])
async def list_company_sessions(
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> list[CompanySession]:
    """List company sessions, newest first."""
    return await manager.list_company_sessions()


@router.get("/sessions/{session_id}", response_model=CompanySession)
async def get_company_session(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> CompanySession:
    try:
        return await manager.get_company_session(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Company session not found")


@router.delete("/sessions/{session_id}")
async def delete_company_session(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> dict[str, str]:
    """Delete a company session and end its running interviews."""
    try:
        await manager.delete_company_session(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Company session not found")
    return {"status": "deleted", "session_id": session_id}


@router.post("/sessions/{session_id}/join", response_model=JoinResponse)
async def join_company_session(
    session_id: str,
    request: JoinRequest,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> JoinResponse:
    """
    Register a candidate.

    Returns the interview session the candidate should start next.
    """
    try:
        await manager.get_company_session(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Company session not found")

    try:
        candidate, record = await manager.join_company_session(
            session_id,
            name=request.name,
            email=request.email,
            modality=request.modality,
            timing=request.timing,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return JoinResponse(
        candidate=candidate,
        interview_session_id=record.session_id,
        total_questions=len(record.questions),
    )


@router.get("/sessions/{session_id}/ranking", response_model=RankingResponse)
async def get_ranking(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> RankingResponse:
    """Candidates ordered by score, with the selection once every interview is done."""
    try:
        company = await manager.get_company_session(session_id)
        ranked = await manager.get_ranking(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Company session not found")

    finished = [
        c for c in company.candidates
        if c.status not in (CandidateStatus.PENDING, CandidateStatus.INTERVIEWING)
    ]

    return RankingResponse(
        session_id=company.session_id,
        status=company.status,
        positions=company.positions,
        candidates_finished=len(finished),
        candidate_count=company.candidate_count,
        selected_candidate_ids=company.selected_candidate_ids,
        ranking=[
            RankedCandidate(
                rank=i + 1,
                candidate_id=c.id,
                name=c.name,
                score=c.score,
                status=c.status,
            )
            for i, c in enumerate(ranked)
        ],
    )
