"""
Interview Orchestrator - State machine for one interview session.

Drives a fixed question list through a strict turn-taking protocol:
the question is spoken, the candidate answers by voice or text, the answer
is scored, and the next question is presented until the session completes.
One orchestrator is parameterized by input modality, timing policy and
score scale instead of one loop per interview flow.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Coroutine
from uuid import uuid4

from hyrily.core.evaluation_engine import EvaluationEngine
from hyrily.core.media import (
    MediaConstraints,
    MediaDevices,
    MediaPermissionError,
    MediaStream,
    MediaUnavailableError,
    release_stream,
)
from hyrily.core.speech_capture import SpeechCaptureEngine
from hyrily.core.speech_synthesis import NullSynthesizer, SpeechSynthesizer
from hyrily.models.interview import (
    SKIPPED_ANSWER_TEXT,
    TERMINAL_PHASES,
    Answer,
    AnswerStatus,
    CompletionReason,
    InputModality,
    InterviewConfig,
    InterviewPhase,
    SessionResult,
    SessionState,
    TimingPolicy,
)
from hyrily.models.question import Question
from hyrily.models.transcript import CaptureError, TranscriptState

logger = logging.getLogger(__name__)


CANDIDATE_SKIP_TEXT = "Skipped by candidate"

VOICE_UNSUPPORTED_NOTICE = "Speech recognition is not supported here. Please type your answers."
MEDIA_DENIED_NOTICE = "Microphone permission denied. You can type your answers instead."
MEDIA_UNAVAILABLE_NOTICE = "No camera or microphone was found. You can type your answers instead."


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


class InterviewOrchestrator:
    """
    Manages one interview session using a state machine pattern.

    States:
        IDLE → SPEAKING → AWAITING_RESPONSE → RECORDING → SCORING
                                  ↓                          ↓
                               SCORING (timeout)     (SPEAKING | COMPLETE)

    Any active state may move to COMPLETE (session time limit) or
    CANCELLED (end_session). Both are terminal.

    The orchestrator coordinates between:
    - Speech synthesis (question playback)
    - Speech capture engine (spoken answers)
    - Evaluation engine (scoring)
    - Media devices (microphone ownership)
    """

    VALID_TRANSITIONS: dict[InterviewPhase, list[InterviewPhase]] = {
        InterviewPhase.IDLE: [InterviewPhase.SPEAKING, InterviewPhase.CANCELLED],
        InterviewPhase.SPEAKING: [
            InterviewPhase.AWAITING_RESPONSE, InterviewPhase.COMPLETE, InterviewPhase.CANCELLED,
        ],
        InterviewPhase.AWAITING_RESPONSE: [
            InterviewPhase.RECORDING, InterviewPhase.SCORING,
            InterviewPhase.COMPLETE, InterviewPhase.CANCELLED,
        ],
        InterviewPhase.RECORDING: [
            InterviewPhase.SCORING, InterviewPhase.AWAITING_RESPONSE,
            InterviewPhase.COMPLETE, InterviewPhase.CANCELLED,
        ],
        InterviewPhase.SCORING: [
            InterviewPhase.SPEAKING, InterviewPhase.COMPLETE, InterviewPhase.CANCELLED,
        ],
        InterviewPhase.COMPLETE: [],  # Terminal state
        InterviewPhase.CANCELLED: [],  # Terminal state
    }

    def __init__(
        self,
        questions: list[Question],
        config: InterviewConfig,
        evaluation_engine: EvaluationEngine,
        synthesizer: SpeechSynthesizer | None = None,
        speech_engine: SpeechCaptureEngine | None = None,
        media_devices: MediaDevices | None = None,
        session_id: str | None = None,
        auto_tick: bool = True,
    ):
        """
        Initialize the orchestrator with component dependencies.

        Args:
            questions: Question list, order fixed for the session
            config: Modality, timing and scoring parameters
            evaluation_engine: Scores answers and computes the aggregate
            synthesizer: Text-to-speech for questions (optional)
            speech_engine: Speech capture for voice answers (optional)
            media_devices: Microphone/camera acquisition (optional)
            session_id: Session ID (generated if omitted)
            auto_tick: Run the one-second clock in a background task
        """
        if not questions:
            raise ValueError("An interview needs at least one question")
        question_ids = [q.id for q in questions]
        if len(set(question_ids)) != len(question_ids):
            raise ValueError("Question ids must be unique within an interview")

        self.session_id = session_id or str(uuid4())
        self.questions = list(questions)
        self.config = config
        self.evaluation_engine = evaluation_engine
        self.synthesizer = synthesizer or NullSynthesizer()
        self.speech_engine = speech_engine or SpeechCaptureEngine(recognizer=None)
        self.media_devices = media_devices
        self.auto_tick = auto_tick

        self.state = SessionState()
        self.result: SessionResult | None = None

        self._started = False
        self._started_monotonic: float | None = None
        self._media_stream: MediaStream | None = None
        self._ticker: asyncio.Task | None = None
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._last_final_transcript = ""

        # Event callbacks
        self._state_change_callbacks: list[Callable[[str, InterviewPhase, InterviewPhase], Awaitable[None]]] = []
        self._question_callbacks: list[Callable[[str, Question, int], Awaitable[None]]] = []
        self._answer_callbacks: list[Callable[[str, Answer], Awaitable[None]]] = []
        self._complete_callbacks: list[Callable[[str, SessionResult], Awaitable[None]]] = []
        self._notice_callbacks: list[Callable[[str, str], Awaitable[None]]] = []

    # =========================================================================
    # OBSERVABLE STATE
    # =========================================================================

    @property
    def phase(self) -> InterviewPhase:
        return self.state.phase

    @property
    def current_question(self) -> Question | None:
        if self.state.phase in TERMINAL_PHASES or self.state.phase == InterviewPhase.IDLE:
            return None
        return self.questions[self.state.current_question_index]

    @property
    def answers(self) -> list[Answer]:
        """Recorded answers in question order."""
        return [self.state.answers[q.id] for q in self.questions if q.id in self.state.answers]

    @property
    def is_active(self) -> bool:
        return self._started and self.state.phase not in TERMINAL_PHASES

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def _transition(self, new_phase: InterviewPhase) -> None:
        """
        Move to a new phase.

        The phase is updated before any callback runs, so a re-entrant call
        observes the new phase.

        Raises:
            StateTransitionError: If transition is invalid
        """
        old_phase = self.state.phase
        valid_next_phases = self.VALID_TRANSITIONS.get(old_phase, [])
        if new_phase not in valid_next_phases:
            raise StateTransitionError(
                f"Invalid transition from {old_phase.value} to {new_phase.value}. "
                f"Valid transitions: {[p.value for p in valid_next_phases]}"
            )

        self.state.phase = new_phase
        logger.info(f"Session {self.session_id}: {old_phase.value} → {new_phase.value}")

        await self._emit(self._state_change_callbacks, self.session_id, old_phase, new_phase)

    def _in_turn(self, phase: InterviewPhase, index: int) -> bool:
        """Whether the session is still at `phase` on question `index`."""
        return self.state.phase == phase and self.state.current_question_index == index

    # =========================================================================
    # INTERVIEW FLOW
    # =========================================================================

    async def start(self) -> None:
        """
        Start the interview: acquire media for voice sessions and present
        the first question.

        Raises:
            StateTransitionError: If the session was already started
        """
        if self._started:
            raise StateTransitionError(f"Session {self.session_id} was already started")
        self._started = True
        self._started_monotonic = time.monotonic()

        self.speech_engine.on_transcript(self._handle_transcript)
        self.speech_engine.on_error(self._handle_capture_error)

        if self.config.modality == InputModality.VOICE:
            await self._prepare_voice()
        else:
            self.state.voice_available = False

        if self.state.phase in TERMINAL_PHASES:
            # Ended while waiting for the microphone
            self._release_media()
            return

        if self.auto_tick and self.config.needs_clock:
            self._ticker = asyncio.get_running_loop().create_task(self._run_ticker())

        logger.info(f"Starting interview {self.session_id} with {len(self.questions)} questions")
        await self._present_question(0)

    async def _prepare_voice(self) -> None:
        """Check speech support and acquire the microphone."""
        if not self.speech_engine.is_supported:
            await self._voice_unavailable(VOICE_UNSUPPORTED_NOTICE)
            return

        if self.media_devices is None:
            return

        try:
            self._media_stream = await self.media_devices.acquire(MediaConstraints(video=None))
        except MediaPermissionError as e:
            logger.warning(f"Media permission denied for session {self.session_id}: {e}")
            await self._voice_unavailable(MEDIA_DENIED_NOTICE)
        except MediaUnavailableError as e:
            logger.warning(f"No media devices for session {self.session_id}: {e}")
            await self._voice_unavailable(MEDIA_UNAVAILABLE_NOTICE)

    async def _present_question(self, index: int) -> None:
        """Speak question `index`, then wait for the candidate."""
        self.state.current_question_index = index
        self.state.question_time_remaining = None
        await self._transition(InterviewPhase.SPEAKING)

        # Turn boundary: nothing from the previous answer may leak into this one
        self.speech_engine.reset_transcript()
        self._last_final_transcript = ""

        question = self.questions[index]
        await self._emit(self._question_callbacks, self.session_id, question, index)
        if not self._in_turn(InterviewPhase.SPEAKING, index):
            return

        await self._speak(question.text)
        if not self._in_turn(InterviewPhase.SPEAKING, index):
            return

        await self._enter_awaiting_response()

    async def _speak(self, text: str) -> None:
        if not self.synthesizer.is_supported:
            return
        try:
            await self.synthesizer.speak(text)
        except Exception as e:
            logger.warning(f"Speech synthesis failed, continuing without audio: {e}")

    async def _enter_awaiting_response(self) -> None:
        index = self.state.current_question_index
        if self.config.timing == TimingPolicy.TIMED:
            self.state.question_time_remaining = self.config.question_time_limit_seconds

        await self._transition(InterviewPhase.AWAITING_RESPONSE)

        if (
            self.config.timing == TimingPolicy.CONTINUOUS
            and self.state.voice_available
            and self._in_turn(InterviewPhase.AWAITING_RESPONSE, index)
        ):
            await self.begin_recording()

    async def begin_recording(self) -> bool:
        """
        Start capturing a spoken answer.

        Returns:
            True if recording started; False if voice capture is unavailable
            or no answer is awaited
        """
        if self.state.phase != InterviewPhase.AWAITING_RESPONSE:
            logger.debug(f"Ignoring begin_recording in phase {self.state.phase.value}")
            return False
        if not self.state.voice_available:
            return False

        index = self.state.current_question_index
        await self._transition(InterviewPhase.RECORDING)
        if not self._in_turn(InterviewPhase.RECORDING, index):
            return False

        self.speech_engine.start_listening()
        return self.speech_engine.error is None

    async def stop_recording(self) -> Answer | None:
        """
        Stop capturing and submit the captured transcript.

        Returns:
            The scored Answer, or None if nothing was captured
        """
        if self.state.phase != InterviewPhase.RECORDING:
            return None

        self._cancel_debounce()
        self.speech_engine.stop_listening()

        text = (self.speech_engine.final_transcript or self.speech_engine.transcript).strip()
        if not text:
            logger.info(f"Session {self.session_id}: nothing captured, waiting for an answer")
            await self._transition(InterviewPhase.AWAITING_RESPONSE)
            return None

        return await self._record_answer(text)

    async def submit_answer(self, text: str) -> Answer | None:
        """
        Submit a typed (or externally transcribed) answer for the current question.

        Returns:
            The scored Answer, or None when the submission was ignored
            (wrong phase, already answered, or empty text)
        """
        if self.state.phase not in (InterviewPhase.AWAITING_RESPONSE, InterviewPhase.RECORDING):
            logger.debug(f"Ignoring submission in phase {self.state.phase.value}")
            return None

        question = self.questions[self.state.current_question_index]
        if question.id in self.state.answers:
            return None

        text = (text or "").strip()
        if not text:
            return None

        if self.state.phase == InterviewPhase.RECORDING:
            self._cancel_debounce()
            self.speech_engine.stop_listening()

        return await self._record_answer(text)

    async def skip_current_question(self) -> Answer | None:
        """Candidate-initiated skip. Recorded exactly like a timeout."""
        return await self._skip_current(CANDIDATE_SKIP_TEXT)

    async def _record_answer(self, text: str) -> Answer | None:
        index = self.state.current_question_index
        question = self.questions[index]

        self.state.question_time_remaining = None
        await self._transition(InterviewPhase.SCORING)
        if not self._in_turn(InterviewPhase.SCORING, index):
            return None

        answer = await self.evaluation_engine.score_answer(question, text)

        if not self._in_turn(InterviewPhase.SCORING, index):
            logger.info(f"Session {self.session_id}: discarding score that arrived after the session ended")
            return None

        await self._store_answer(answer)
        await self._advance(index)
        return answer

    async def _skip_current(self, text: str) -> Answer | None:
        if self.state.phase not in (InterviewPhase.AWAITING_RESPONSE, InterviewPhase.RECORDING):
            return None

        index = self.state.current_question_index
        question = self.questions[index]
        if question.id in self.state.answers:
            return None

        if self.state.phase == InterviewPhase.RECORDING:
            self._cancel_debounce()
            self.speech_engine.stop_listening()

        self.state.question_time_remaining = None
        await self._transition(InterviewPhase.SCORING)
        if not self._in_turn(InterviewPhase.SCORING, index):
            return None

        answer = Answer(
            question_id=question.id,
            text=text,
            score=0.0,
            status=AnswerStatus.SKIPPED,
        )
        logger.info(f"Session {self.session_id}: question {question.id} skipped ({text})")

        await self._store_answer(answer)
        await self._advance(index)
        return answer

    async def _store_answer(self, answer: Answer) -> None:
        self.state.answers[answer.question_id] = answer
        await self._emit(self._answer_callbacks, self.session_id, answer)

    async def _advance(self, index: int) -> None:
        """Present the next question or complete the session."""
        if not self._in_turn(InterviewPhase.SCORING, index):
            return

        if index + 1 >= len(self.questions):
            await self._complete(CompletionReason.ALL_QUESTIONS)
        else:
            await self._present_question(index + 1)

    # =========================================================================
    # TIMING
    # =========================================================================

    async def tick(self) -> None:
        """
        Advance the session clock by one second and run whatever it triggers
        (a timeout skip or time-limit completion) to the end.
        """
        action = self._count_second()
        if action is not None:
            await action

    def _count_second(self) -> Coroutine | None:
        """
        Count one second without awaiting anything.

        Counts the session time limit down in every active phase and the
        per-question countdown only while an answer is awaited or recorded.

        Returns:
            The coroutine the elapsed second triggers, if any
        """
        if not self.is_active or self.state.phase == InterviewPhase.IDLE:
            return None

        self.state.elapsed_seconds += 1

        limit = self.config.session_time_limit_seconds
        if limit is not None and self.state.elapsed_seconds >= limit:
            logger.info(f"Session {self.session_id}: time limit of {limit}s reached")
            return self._complete(CompletionReason.TIME_LIMIT)

        if (
            self.config.timing == TimingPolicy.TIMED
            and self.state.phase in (InterviewPhase.AWAITING_RESPONSE, InterviewPhase.RECORDING)
            and self.state.question_time_remaining is not None
        ):
            self.state.question_time_remaining = max(0, self.state.question_time_remaining - 1)
            if self.state.question_time_remaining == 0:
                # Fires once per question
                self.state.question_time_remaining = None
                return self._skip_current(SKIPPED_ANSWER_TEXT)

        return None

    async def _run_ticker(self) -> None:
        # The clock only counts; triggered turns run in their own tasks
        while self.is_active:
            await asyncio.sleep(self.config.tick_seconds)
            action = self._count_second()
            if action is not None:
                self._spawn(action)

    # =========================================================================
    # COMPLETION AND CANCELLATION
    # =========================================================================

    async def _complete(self, reason: CompletionReason) -> None:
        if self.state.phase in TERMINAL_PHASES:
            return

        # Every question gets exactly one answer
        for question in self.questions:
            if question.id not in self.state.answers:
                self.state.answers[question.id] = Answer(
                    question_id=question.id,
                    text=SKIPPED_ANSWER_TEXT,
                    score=0.0,
                    status=AnswerStatus.SKIPPED,
                )

        self._teardown()
        self.state.question_time_remaining = None

        answers = [self.state.answers[q.id] for q in self.questions]
        self.result = SessionResult(
            session_id=self.session_id,
            answers=answers,
            aggregate_score=self.evaluation_engine.aggregate(answers),
            duration_seconds=self._duration_seconds(),
            completion_reason=reason,
            score_scale=self.evaluation_engine.scale,
        )

        await self._transition(InterviewPhase.COMPLETE)
        logger.info(
            f"Session {self.session_id} complete: "
            f"score={self.result.aggregate_score}, reason={reason.value}"
        )
        await self._emit(self._complete_callbacks, self.session_id, self.result)

    async def end_session(self) -> None:
        """
        End the session early. Nothing is emitted and unscored state is discarded.

        Safe to call in any phase; a finished session is left untouched.
        """
        if self.state.phase in TERMINAL_PHASES:
            return

        self._teardown()
        self.state.question_time_remaining = None
        self.state.answers.clear()

        await self._transition(InterviewPhase.CANCELLED)

    def _teardown(self) -> None:
        """Stop capture and playback, clear timers and release the microphone."""
        self._cancel_debounce()
        self.speech_engine.close()

        try:
            self.synthesizer.cancel()
        except Exception as e:
            logger.error(f"Failed to cancel speech synthesis: {e}")

        current = asyncio.current_task()
        if self._ticker is not None and self._ticker is not current:
            self._ticker.cancel()
        self._ticker = None

        for task in list(self._tasks):
            if task is not current:
                task.cancel()

        self._release_media()

    def _release_media(self) -> None:
        release_stream(self._media_stream)
        self._media_stream = None

    def _duration_seconds(self) -> float:
        if self._started_monotonic is None:
            return 0.0
        return round(time.monotonic() - self._started_monotonic, 2)

    # =========================================================================
    # SPEECH CAPTURE EVENTS
    # =========================================================================

    def _handle_transcript(self, transcript: TranscriptState) -> None:
        """Re-arm the quiet-period debounce on every new final segment."""
        if self.config.timing != TimingPolicy.CONTINUOUS:
            return
        if self.state.phase != InterviewPhase.RECORDING:
            return
        if not transcript.final.strip() or transcript.final == self._last_final_transcript:
            return

        self._last_final_transcript = transcript.final
        self._cancel_debounce()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.config.quiet_period_seconds, self._on_quiet_period)

    def _on_quiet_period(self) -> None:
        self._debounce_handle = None
        if self.state.phase == InterviewPhase.RECORDING:
            self._spawn(self.stop_recording())

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _handle_capture_error(self, error: CaptureError) -> None:
        """A fatal recognizer error disables voice input; typing still works."""
        logger.warning(f"Session {self.session_id}: voice capture lost ({error.code})")
        self._cancel_debounce()
        self._spawn(self._voice_unavailable(f"{error.message}. You can type your answer instead."))

    async def _voice_unavailable(self, notice: str) -> None:
        self.state.voice_available = False
        self.state.notice = notice

        if self.state.phase == InterviewPhase.RECORDING:
            await self._transition(InterviewPhase.AWAITING_RESPONSE)

        await self._emit(self._notice_callbacks, self.session_id, notice)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Session {self.session_id}: background task failed: {task.exception()}")

    async def _emit(self, callbacks: list, *args) -> None:
        for callback in list(callbacks):
            try:
                await callback(*args)
            except Exception as e:
                logger.error(f"Interview callback error: {e}")

    # =========================================================================
    # EVENT CALLBACKS
    # =========================================================================

    def on_state_change(
        self,
        callback: Callable[[str, InterviewPhase, InterviewPhase], Awaitable[None]]
    ) -> None:
        """Register a callback for phase changes."""
        self._state_change_callbacks.append(callback)

    def on_question(
        self,
        callback: Callable[[str, Question, int], Awaitable[None]]
    ) -> None:
        """Register a callback for each presented question."""
        self._question_callbacks.append(callback)

    def on_answer(
        self,
        callback: Callable[[str, Answer], Awaitable[None]]
    ) -> None:
        """Register a callback for recorded answers (scored or skipped)."""
        self._answer_callbacks.append(callback)

    def on_complete(
        self,
        callback: Callable[[str, SessionResult], Awaitable[None]]
    ) -> None:
        """Register a callback for session completion."""
        self._complete_callbacks.append(callback)

    def on_notice(
        self,
        callback: Callable[[str, str], Awaitable[None]]
    ) -> None:
        """Register a callback for user-facing notices (voice capture lost, etc.)."""
        self._notice_callbacks.append(callback)

    def remove_callback(self, callback: Callable[..., Awaitable[None]]) -> None:
        """Unregister a callback from every event it was registered for."""
        for callbacks in (
            self._state_change_callbacks,
            self._question_callbacks,
            self._answer_callbacks,
            self._complete_callbacks,
            self._notice_callbacks,
        ):
            while callback in callbacks:
                callbacks.remove(callback)
