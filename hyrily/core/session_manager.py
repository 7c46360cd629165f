"""
Interview Session Manager - builds, runs and persists interview sessions.

Owns the live orchestrators, wires each one to its collaborators
(evaluator, synthesizer, speech capture) and writes records through the
session repository. Company sessions share one question set across
several candidate interviews and select the best candidates at the end.
"""

import logging
from datetime import datetime
from typing import Callable

from hyrily.config.settings import Settings, get_settings
from hyrily.core.candidate_ranking import rank_candidates, select_top_candidates
from hyrily.core.evaluation_engine import AnswerEvaluator, EvaluationEngine
from hyrily.core.interview_orchestrator import InterviewOrchestrator
from hyrily.core.media import MediaDevices
from hyrily.core.question_bank import PRACTICE_QUESTIONS, QuestionSource, load_questions
from hyrily.core.session_store import SessionRepository
from hyrily.core.speech_capture import SpeechCaptureEngine, SpeechRecognizer
from hyrily.core.speech_synthesis import EdgeTTSSynthesizer, NullSynthesizer, SpeechSynthesizer
from hyrily.core.transcription import WhisperApiRecognizer
from hyrily.models.company import Candidate, CandidateStatus, CompanySession, CompanySessionStatus
from hyrily.models.evaluation import ScoreScale, SkipPolicy, normalize_score
from hyrily.models.interview import (
    InputModality,
    InterviewConfig,
    InterviewPhase,
    InterviewSessionRecord,
    SessionResult,
    TimingPolicy,
)
from hyrily.models.question import Question

logger = logging.getLogger(__name__)


class InterviewSessionManager:
    """
    Entry point for creating and driving interview sessions.

    Live orchestrators are kept in memory until their session completes or
    is cancelled; records outlive them in the repository.
    """

    def __init__(
        self,
        repository: SessionRepository,
        question_source: QuestionSource | None = None,
        evaluator: AnswerEvaluator | None = None,
        settings: Settings | None = None,
        synthesizer_factory: Callable[[], SpeechSynthesizer] | None = None,
        recognizer_factory: Callable[[], SpeechRecognizer | None] | None = None,
        media_devices: MediaDevices | None = None,
        auto_tick: bool = True,
    ):
        """
        Initialize the session manager.

        Args:
            repository: Where session records are stored
            question_source: Question generator (static questions if omitted)
            evaluator: Answer evaluator (neutral scores if omitted)
            settings: Application settings
            synthesizer_factory: Builds one synthesizer per session
            recognizer_factory: Builds one recognizer per voice session
            media_devices: Microphone acquisition for voice sessions
            auto_tick: Run session clocks in the background
        """
        self.repository = repository
        self.question_source = question_source
        self.evaluator = evaluator
        self.settings = settings or get_settings()
        self.synthesizer_factory = synthesizer_factory or self._default_synthesizer
        self.recognizer_factory = recognizer_factory or self._default_recognizer
        self.media_devices = media_devices
        self.auto_tick = auto_tick

        self._live: dict[str, InterviewOrchestrator] = {}
        self._recognizers: dict[str, SpeechRecognizer] = {}

    def _default_synthesizer(self) -> SpeechSynthesizer:
        if self.settings.tts_enabled:
            return EdgeTTSSynthesizer(voice=self.settings.tts_voice)
        return NullSynthesizer()

    def _default_recognizer(self) -> SpeechRecognizer | None:
        if self.settings.whisper_api_url:
            return WhisperApiRecognizer(self.settings.whisper_api_url)
        return None

    def default_config(self, **overrides) -> InterviewConfig:
        """Interview config populated from settings."""
        values = {
            "question_time_limit_seconds": self.settings.question_time_limit_seconds,
            "session_time_limit_seconds": self.settings.session_time_limit_seconds,
            "quiet_period_seconds": self.settings.quiet_period_seconds,
            "technology_stack": self.settings.default_technology_stack,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return InterviewConfig(**values)

    # =========================================================================
    # INTERVIEW SESSIONS
    # =========================================================================

    async def create_session(
        self,
        config: InterviewConfig,
        questions: list[Question] | None = None,
        practice: bool = False,
        question_count: int | None = None,
        company_session_id: str | None = None,
        candidate_id: str | None = None,
    ) -> InterviewSessionRecord:
        """
        Create a new interview session and its orchestrator.

        Args:
            config: Interview configuration
            questions: Fixed questions (generated when omitted)
            practice: Use the fixed frontend practice questions
            question_count: Number of questions to generate
            company_session_id: Owning company session, if any
            candidate_id: Candidate taking the interview, if any

        Returns:
            The stored session record
        """
        if questions is None:
            if practice:
                questions = list(PRACTICE_QUESTIONS)
            else:
                questions = await load_questions(
                    self.question_source,
                    config.technology_stack,
                    question_count or self.settings.question_count,
                )

        record = InterviewSessionRecord(
            config=config,
            questions=questions,
            company_session_id=company_session_id,
            candidate_id=candidate_id,
        )
        self._live[record.session_id] = self._build_orchestrator(record)
        await self.repository.save_session(record)

        logger.info(
            f"Created interview session {record.session_id} "
            f"({config.modality.value}, {config.timing.value}, {len(questions)} questions)"
        )
        return record

    def _build_orchestrator(self, record: InterviewSessionRecord) -> InterviewOrchestrator:
        config = record.config

        recognizer = None
        if config.modality == InputModality.VOICE:
            recognizer = self.recognizer_factory()
            if recognizer is not None:
                self._recognizers[record.session_id] = recognizer

        orchestrator = InterviewOrchestrator(
            questions=record.questions,
            config=config,
            evaluation_engine=EvaluationEngine(
                evaluator=self.evaluator,
                scale=config.score_scale,
                skip_policy=config.skip_policy,
                technology_stack=config.technology_stack,
            ),
            synthesizer=self.synthesizer_factory(),
            speech_engine=SpeechCaptureEngine(
                recognizer=recognizer,
                restart_delay=self.settings.recognizer_restart_delay_seconds,
            ),
            media_devices=self.media_devices if config.modality == InputModality.VOICE else None,
            session_id=record.session_id,
            auto_tick=self.auto_tick,
        )

        async def on_state_change(session_id: str, old: InterviewPhase, new: InterviewPhase) -> None:
            await self._handle_state_change(session_id, new)

        async def on_complete(session_id: str, result: SessionResult) -> None:
            await self._handle_complete(session_id, result)

        orchestrator.on_state_change(on_state_change)
        orchestrator.on_complete(on_complete)
        return orchestrator

    def get_orchestrator(self, session_id: str) -> InterviewOrchestrator:
        """Get the live orchestrator of a running session."""
        orchestrator = self._live.get(session_id)
        if orchestrator is None:
            raise ValueError(f"Session not found: {session_id}")
        return orchestrator

    def get_recognizer(self, session_id: str) -> SpeechRecognizer | None:
        return self._recognizers.get(session_id)

    async def get_record(self, session_id: str) -> InterviewSessionRecord:
        record = await self.repository.get_session(session_id)
        if record is None:
            raise ValueError(f"Session not found: {session_id}")
        return record

    async def start_session(self, session_id: str) -> InterviewOrchestrator:
        """Start a created session and present its first question."""
        orchestrator = self.get_orchestrator(session_id)
        record = await self.get_record(session_id)

        record.started_at = datetime.utcnow()
        await self.repository.save_session(record)

        if record.company_session_id and record.candidate_id:
            await self._update_candidate(
                record.company_session_id,
                record.candidate_id,
                status=CandidateStatus.INTERVIEWING,
                started_at=record.started_at,
            )

        await orchestrator.start()
        return orchestrator

    async def end_session(self, session_id: str) -> None:
        """Cancel a running session. Nothing is persisted beyond the phase."""
        orchestrator = self.get_orchestrator(session_id)
        await orchestrator.end_session()

    async def transcribe_audio(self, session_id: str, audio_data: bytes) -> str | None:
        """Feed one audio segment to a voice session's recognizer."""
        recognizer = self._recognizers.get(session_id)
        if not isinstance(recognizer, WhisperApiRecognizer):
            raise ValueError(f"Session {session_id} does not accept audio")
        return await recognizer.transcribe_segment(audio_data)

    async def _handle_state_change(self, session_id: str, phase: InterviewPhase) -> None:
        record = await self.repository.get_session(session_id)
        if record is None:
            return

        record.phase = phase
        if phase == InterviewPhase.CANCELLED:
            record.completed_at = datetime.utcnow()
        await self.repository.save_session(record)

        if phase == InterviewPhase.CANCELLED:
            if record.company_session_id and record.candidate_id:
                # An abandoned candidate interview counts as finished with no score
                await self._update_candidate(
                    record.company_session_id,
                    record.candidate_id,
                    status=CandidateStatus.COMPLETED,
                    score=0.0,
                    completed_at=record.completed_at,
                )
            await self._release(session_id)

    async def _handle_complete(self, session_id: str, result: SessionResult) -> None:
        record = await self.repository.get_session(session_id)
        if record is None:
            return

        record.phase = InterviewPhase.COMPLETE
        record.result = result
        record.completed_at = datetime.utcnow()
        await self.repository.save_session(record)
        logger.info(f"Persisted result of session {session_id}: {result.aggregate_score}")

        if record.company_session_id and record.candidate_id:
            await self._update_candidate(
                record.company_session_id,
                record.candidate_id,
                status=CandidateStatus.COMPLETED,
                score=normalize_score(result.aggregate_score, result.score_scale, ScoreScale.HUNDRED_POINT),
                completed_at=record.completed_at,
            )

        await self._release(session_id)

    async def _release(self, session_id: str) -> None:
        """Drop a finished orchestrator and close its recognizer."""
        self._live.pop(session_id, None)
        recognizer = self._recognizers.pop(session_id, None)
        if isinstance(recognizer, WhisperApiRecognizer):
            await recognizer.close()

    # =========================================================================
    # COMPANY SESSIONS
    # =========================================================================

    async def create_company_session(
        self,
        technology_stack: str,
        candidate_count: int,
        positions: int = 1,
        question_count: int | None = None,
    ) -> CompanySession:
        """
        Create a company interview round with one shared, shuffled question set.
        """
        if positions > candidate_count:
            raise ValueError("Cannot select more candidates than are interviewed")

        questions = await load_questions(
            self.question_source,
            technology_stack,
            question_count or self.settings.question_count,
            shuffle=True,
        )

        session = CompanySession(
            technology_stack=technology_stack,
            candidate_count=candidate_count,
            positions=positions,
            questions=questions,
        )
        await self.repository.save_company_session(session)

        logger.info(
            f"Created company session {session.session_id} for {technology_stack}: "
            f"{candidate_count} candidates, {len(questions)} questions"
        )
        return session

    async def get_company_session(self, session_id: str) -> CompanySession:
        session = await self.repository.get_company_session(session_id)
        if session is None:
            raise ValueError(f"Company session not found: {session_id}")
        return session

    async def join_company_session(
        self,
        company_session_id: str,
        name: str,
        email: str | None = None,
        modality: InputModality = InputModality.TYPED,
        timing: TimingPolicy = TimingPolicy.UNTIMED,
    ) -> tuple[Candidate, InterviewSessionRecord]:
        """
        Register a candidate and create their interview session.

        Raises:
            ValueError: If the company session is unknown, finished or full
        """
        company = await self.get_company_session(company_session_id)
        if company.status != CompanySessionStatus.ACTIVE:
            raise ValueError(f"Company session {company_session_id} is closed")
        if len(company.candidates) >= company.candidate_count:
            raise ValueError(f"Company session {company_session_id} is full")

        candidate = Candidate(name=name, email=email)
        config = self.default_config(
            modality=modality,
            timing=timing,
            technology_stack=company.technology_stack,
            score_scale=ScoreScale.HUNDRED_POINT,
            skip_policy=SkipPolicy.INCLUDE_AS_ZERO,
        )
        record = await self.create_session(
            config,
            questions=list(company.questions),
            company_session_id=company.session_id,
            candidate_id=candidate.id,
        )

        candidate.interview_session_id = record.session_id
        company.candidates.append(candidate)
        await self.repository.save_company_session(company)

        logger.info(f"Candidate {candidate.id} joined company session {company_session_id}")
        return candidate, record

    async def list_company_sessions(self) -> list[CompanySession]:
        return await self.repository.list_company_sessions()

    async def get_ranking(self, company_session_id: str) -> list[Candidate]:
        """Candidates ordered by score, best first."""
        company = await self.get_company_session(company_session_id)
        return rank_candidates(company.candidates)

    async def delete_company_session(self, company_session_id: str) -> None:
        company = await self.get_company_session(company_session_id)
        for candidate in company.candidates:
            if candidate.interview_session_id in self._live:
                await self.end_session(candidate.interview_session_id)
        await self.repository.delete_company_session(company_session_id)

    async def _update_candidate(
        self,
        company_session_id: str,
        candidate_id: str,
        status: CandidateStatus,
        score: float | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> None:
        company = await self.repository.get_company_session(company_session_id)
        if company is None:
            return
        candidate = company.get_candidate(candidate_id)
        if candidate is None:
            return

        candidate.status = status
        if score is not None:
            candidate.score = round(score, 2)
        if started_at is not None:
            candidate.started_at = started_at
        if completed_at is not None:
            candidate.completed_at = completed_at

        if company.status == CompanySessionStatus.ACTIVE and company.all_interviews_finished():
            select_top_candidates(company)

        await self.repository.save_company_session(company)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def cleanup(self) -> None:
        """End every live session."""
        for session_id in list(self._live):
            orchestrator = self._live.get(session_id)
            if orchestrator is not None and orchestrator.is_active:
                await orchestrator.end_session()
            await self._release(session_id)
