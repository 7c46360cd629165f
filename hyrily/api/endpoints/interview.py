"""
Interview API endpoints

Handles interview session lifecycle:
- Creating sessions
- Starting interviews
- Submitting and skipping answers
- Ending interviews
- Status and report
"""

import asyncio
import base64
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from hyrily.api.dependencies import get_report_generator, get_session_manager
from hyrily.core.interview_orchestrator import InterviewOrchestrator, StateTransitionError
from hyrily.core.report_generator import ReportGenerator
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.models.evaluation import ScoreScale, SkipPolicy
from hyrily.models.interview import (
    Answer,
    InputModality,
    InterviewPhase,
    SessionResult,
    TimingPolicy,
)
from hyrily.models.question import Question
from hyrily.models.report import InterviewReport
from hyrily.models.transcript import TranscriptState

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class SetupRequest(BaseModel):
    """Request model for interview setup."""
    modality: InputModality = InputModality.TYPED
    timing: TimingPolicy = TimingPolicy.UNTIMED
    technology_stack: str | None = None
    practice: bool = False
    question_count: int | None = Field(default=None, ge=1, le=30)
    question_time_limit_seconds: int | None = Field(default=None, ge=1)
    session_time_limit_seconds: int | None = Field(default=None, ge=1)
    score_scale: ScoreScale = ScoreScale.FIVE_POINT
    skip_policy: SkipPolicy = SkipPolicy.INCLUDE_AS_ZERO


class SetupResponse(BaseModel):
    """Response model for interview setup."""
    session_id: str
    status: str
    total_questions: int
    message: str


class QuestionPayload(BaseModel):
    """A presented question."""
    question_id: str
    question_text: str
    question_type: str
    category: str | None = None
    question_number: int
    total_questions: int
    time_limit_seconds: int | None = None
    audio_base64: str | None = None


class StartResponse(BaseModel):
    """Response after starting interview."""
    session_id: str
    phase: InterviewPhase
    question: QuestionPayload | None = None
    voice_available: bool
    notice: str | None = None


class SubmitAnswerRequest(BaseModel):
    """Request model for submitting a typed answer."""
    answer: str


class TurnResponse(BaseModel):
    """Response after an answer was submitted or skipped."""
    action: str  # "question", "complete", "ignored"
    phase: InterviewPhase
    answer: Answer | None = None
    next_question: QuestionPayload | None = None
    result: SessionResult | None = None


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    phase: InterviewPhase
    question_number: int | None = None
    total_questions: int
    answered_count: int
    elapsed_seconds: int
    question_time_remaining: int | None = None
    voice_available: bool
    notice: str | None = None
    duration_seconds: float


# ============================================================================
# HELPERS
# ============================================================================

def _get_orchestrator(manager: InterviewSessionManager, session_id: str) -> InterviewOrchestrator:
    try:
        return manager.get_orchestrator(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Session not found or no longer running")


def _question_payload(orchestrator: InterviewOrchestrator) -> QuestionPayload | None:
    question = orchestrator.current_question
    if question is None:
        return None

    audio = getattr(orchestrator.synthesizer, "last_audio", None)
    return _build_question_payload(
        question,
        orchestrator.state.current_question_index,
        len(orchestrator.questions),
        orchestrator.state.question_time_remaining,
        audio,
    )


def _build_question_payload(
    question: Question,
    index: int,
    total: int,
    time_limit: int | None = None,
    audio: bytes | None = None,
) -> QuestionPayload:
    return QuestionPayload(
        question_id=question.id,
        question_text=question.text,
        question_type=question.type.value,
        category=question.category,
        question_number=index + 1,
        total_questions=total,
        time_limit_seconds=time_limit,
        audio_base64=base64.b64encode(audio).decode() if audio else None,
    )


def _turn_response(orchestrator: InterviewOrchestrator, answer: Answer | None) -> TurnResponse:
    if answer is None:
        return TurnResponse(action="ignored", phase=orchestrator.phase)

    if orchestrator.phase == InterviewPhase.COMPLETE:
        return TurnResponse(
            action="complete",
            phase=orchestrator.phase,
            answer=answer,
            result=orchestrator.result,
        )

    return TurnResponse(
        action="question",
        phase=orchestrator.phase,
        answer=answer,
        next_question=_question_payload(orchestrator),
    )


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/setup", response_model=SetupResponse)
async def setup_interview(
    request: SetupRequest,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> SetupResponse:
    """
    Create a new interview session.

    This loads the questions but does not start the interview yet.
    """
    try:
        config = manager.default_config(
            modality=request.modality,
            timing=request.timing,
            technology_stack=request.technology_stack,
            question_time_limit_seconds=request.question_time_limit_seconds,
            session_time_limit_seconds=request.session_time_limit_seconds,
            score_scale=request.score_scale,
            skip_policy=request.skip_policy,
        )
        record = await manager.create_session(
            config,
            practice=request.practice,
            question_count=request.question_count,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SetupResponse(
        session_id=record.session_id,
        status="created",
        total_questions=len(record.questions),
        message="Interview session created. Call /start to begin.",
    )


@router.post("/{session_id}/start", response_model=StartResponse)
async def start_interview(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> StartResponse:
    """
    Start the interview.

    Presents the first question and waits for the candidate.
    """
    _get_orchestrator(manager, session_id)

    try:
        orchestrator = await manager.start_session(session_id)
    except StateTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StartResponse(
        session_id=session_id,
        phase=orchestrator.phase,
        question=_question_payload(orchestrator),
        voice_available=orchestrator.state.voice_available,
        notice=orchestrator.state.notice,
    )


@router.post("/{session_id}/respond", response_model=TurnResponse)
async def submit_answer(
    session_id: str,
    request: SubmitAnswerRequest,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> TurnResponse:
    """
    Submit a typed answer to the current question.

    The answer is scored and the next question presented. A submission
    outside of an awaited answer is ignored.
    """
    orchestrator = _get_orchestrator(manager, session_id)
    if not orchestrator.is_active:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot submit an answer in phase: {orchestrator.phase.value}"
        )

    answer = await orchestrator.submit_answer(request.answer)
    return _turn_response(orchestrator, answer)


@router.post("/{session_id}/skip", response_model=TurnResponse)
async def skip_question(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> TurnResponse:
    """Skip the current question. It is recorded with a score of 0."""
    orchestrator = _get_orchestrator(manager, session_id)
    if not orchestrator.is_active:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot skip in phase: {orchestrator.phase.value}"
        )

    answer = await orchestrator.skip_current_question()
    return _turn_response(orchestrator, answer)


@router.post("/{session_id}/end")
async def end_interview(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """
    End the interview early.

    Unscored answers are discarded and no result is recorded.
    """
    try:
        record = await manager.get_record(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Session not found")

    if record.phase in (InterviewPhase.COMPLETE, InterviewPhase.CANCELLED):
        return {"status": "already_ended", "session_id": session_id, "phase": record.phase.value}

    await manager.end_session(session_id)
    return {"status": "ended", "session_id": session_id, "phase": InterviewPhase.CANCELLED.value}


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
) -> SessionStatusResponse:
    """Get the current status of an interview session."""
    try:
        record = await manager.get_record(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        orchestrator = manager.get_orchestrator(session_id)
    except ValueError:
        orchestrator = None

    if orchestrator is None:
        answered = len(record.result.answers) if record.result else 0
        return SessionStatusResponse(
            session_id=session_id,
            phase=record.phase,
            total_questions=len(record.questions),
            answered_count=answered,
            elapsed_seconds=int(record.get_duration_seconds()),
            voice_available=False,
            duration_seconds=record.get_duration_seconds(),
        )

    question = orchestrator.current_question
    return SessionStatusResponse(
        session_id=session_id,
        phase=orchestrator.phase,
        question_number=orchestrator.state.current_question_index + 1 if question else None,
        total_questions=len(orchestrator.questions),
        answered_count=len(orchestrator.answers),
        elapsed_seconds=orchestrator.state.elapsed_seconds,
        question_time_remaining=orchestrator.state.question_time_remaining,
        voice_available=orchestrator.state.voice_available,
        notice=orchestrator.state.notice,
        duration_seconds=record.get_duration_seconds(),
    )


@router.get("/{session_id}/report", response_model=InterviewReport)
async def get_report(
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
    report_generator: ReportGenerator = Depends(get_report_generator),
) -> InterviewReport:
    """Get the feedback report of a completed interview."""
    try:
        record = await manager.get_record(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Session not found")

    if record.result is None:
        raise HTTPException(
            status_code=400,
            detail=f"Interview not complete. Current phase: {record.phase.value}"
        )

    return await report_generator.generate(record)


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def websocket_interview(
    websocket: WebSocket,
    session_id: str,
    manager: InterviewSessionManager = Depends(get_session_manager),
):
    """
    WebSocket endpoint for real-time interview interaction.

    Client sends JSON messages:
    - start: Start the interview
    - begin_recording / stop_recording: Voice answer control
    - answer: Submit typed text ({"text": ...})
    - skip: Skip the current question
    - end: End the interview
    - ping
    Binary frames are audio segments for voice sessions.

    Server sends:
    - state_change, question, question_audio, transcript,
      answer, notice, complete, error, pong
    """
    await websocket.accept()

    try:
        orchestrator = manager.get_orchestrator(session_id)
    except ValueError:
        await websocket.close(code=4004, reason="Session not found")
        return

    connected = True
    pending: set[asyncio.Task] = set()

    async def send(message: dict[str, Any]) -> None:
        if connected:
            await websocket.send_json(message)

    async def on_state_change(sid: str, old: InterviewPhase, new: InterviewPhase) -> None:
        await send({"type": "state_change", "from": old.value, "to": new.value})
        audio = getattr(orchestrator.synthesizer, "last_audio", None)
        if new == InterviewPhase.AWAITING_RESPONSE and old == InterviewPhase.SPEAKING and audio:
            await send({"type": "question_audio", "audio_base64": base64.b64encode(audio).decode()})

    async def on_question(sid: str, question: Question, index: int) -> None:
        payload = _build_question_payload(question, index, len(orchestrator.questions))
        await send({"type": "question", "data": payload.model_dump()})

    async def on_answer(sid: str, answer: Answer) -> None:
        await send({"type": "answer", "data": answer.model_dump(mode="json")})

    async def on_notice(sid: str, notice: str) -> None:
        await send({"type": "notice", "message": notice})

    async def on_complete(sid: str, result: SessionResult) -> None:
        await send({"type": "complete", "data": result.model_dump(mode="json")})

    def on_transcript(transcript: TranscriptState) -> None:
        task = asyncio.get_running_loop().create_task(
            send({"type": "transcript", "data": transcript.model_dump()})
        )
        pending.add(task)
        task.add_done_callback(pending.discard)

    orchestrator.on_state_change(on_state_change)
    orchestrator.on_question(on_question)
    orchestrator.on_answer(on_answer)
    orchestrator.on_notice(on_notice)
    orchestrator.on_complete(on_complete)
    orchestrator.speech_engine.on_transcript(on_transcript)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("bytes") is not None:
                try:
                    await manager.transcribe_audio(session_id, message["bytes"])
                except ValueError as e:
                    await send({"type": "error", "message": str(e)})
                continue

            try:
                data = json.loads(message.get("text") or "{}")
                if not isinstance(data, dict):
                    raise ValueError("Messages must be JSON objects")
                message_type = data.get("type")

                if message_type == "start":
                    await manager.start_session(session_id)

                elif message_type == "begin_recording":
                    await orchestrator.begin_recording()

                elif message_type == "stop_recording":
                    await orchestrator.stop_recording()

                elif message_type == "answer":
                    await orchestrator.submit_answer(data.get("text", ""))

                elif message_type == "skip":
                    await orchestrator.skip_current_question()

                elif message_type == "end":
                    await manager.end_session(session_id)
                    await send({"type": "ended", "session_id": session_id})
                    break

                elif message_type == "ping":
                    await send({"type": "pong"})

            except (StateTransitionError, ValueError) as e:
                # JSONDecodeError is a ValueError
                logger.warning(f"WebSocket request failed for session {session_id}: {e}")
                await send({"type": "error", "message": str(e)})
                continue

            if orchestrator.phase == InterviewPhase.COMPLETE:
                break

    except WebSocketDisconnect:
        # Client disconnected
        logger.info(f"WebSocket client disconnected from session {session_id}")
    finally:
        connected = False
        for callback in (on_state_change, on_question, on_answer, on_notice, on_complete):
            orchestrator.remove_callback(callback)
        orchestrator.speech_engine.remove_transcript_listener(on_transcript)
        for task in list(pending):
            task.cancel()
