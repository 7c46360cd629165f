"""
Test configuration and fixtures for Hyrily.

Every external collaborator of an interview (recognizer, evaluator,
synthesizer, media devices, question source) has an in-process fake here.
"""

import asyncio
from typing import Callable

import pytest

from hyrily.core.evaluation_engine import EvaluationEngine
from hyrily.core.interview_orchestrator import InterviewOrchestrator
from hyrily.core.media import MediaConstraints
from hyrily.core.speech_capture import SpeechCaptureEngine
from hyrily.models.evaluation import Evaluation, ScoreScale
from hyrily.models.interview import InterviewConfig
from hyrily.models.question import Question, QuestionType
from hyrily.models.transcript import RecognitionResult


# ============================================================================
# FAKE COLLABORATORS
# ============================================================================

class FakeRecognizer:
    """Recognizer driven by the test through the emit_* helpers."""

    def __init__(self, fail_start: bool = False):
        self.on_start = None
        self.on_result = None
        self.on_error = None
        self.on_end = None
        self.fail_start = fail_start
        self.start_calls = 0
        self.stop_calls = 0
        self.running = False

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("recognizer already started")
        self.running = True
        if self.on_start:
            self.on_start()

    def stop(self) -> None:
        self.stop_calls += 1
        was_running = self.running
        self.running = False
        if was_running and self.on_end:
            self.on_end()

    def emit_results(self, results: list[tuple[str, bool]], result_index: int = 0) -> None:
        self.on_result(
            [RecognitionResult(transcript=text, is_final=final) for text, final in results],
            result_index,
        )

    def emit_final(self, text: str) -> None:
        self.emit_results([(text, True)])

    def emit_interim(self, text: str) -> None:
        self.emit_results([(text, False)])

    def emit_error(self, code: str) -> None:
        self.on_error(code)

    def emit_end(self) -> None:
        self.running = False
        self.on_end()


class FakeEvaluator:
    """Returns scripted scores in call order."""

    def __init__(
        self,
        scores: list[float] | None = None,
        scale: ScoreScale = ScoreScale.HUNDRED_POINT,
        fail: bool = False,
        gate: asyncio.Event | None = None,
    ):
        self.scores = list(scores or [])
        self.scale = scale
        self.fail = fail
        self.gate = gate
        self.calls: list[dict] = []

    async def evaluate_answer(self, question, answer, question_type, technology_stack) -> Evaluation:
        self.calls.append({
            "question": question,
            "answer": answer,
            "question_type": question_type,
            "technology_stack": technology_stack,
        })
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ConnectionError("evaluator unreachable")
        score = self.scores[len(self.calls) - 1] if len(self.calls) <= len(self.scores) else 0
        return Evaluation(score=score, feedback=f"Feedback for: {answer}", scale=self.scale)


class FakeSynthesizer:
    is_supported = True

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.fail = fail
        self.delay = delay
        self.spoken: list[str] = []
        self.cancel_calls = 0

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("audio output unavailable")

    def cancel(self) -> None:
        self.cancel_calls += 1


class FakeTrack:
    def __init__(self, kind: str):
        self.kind = kind
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeStream:
    def __init__(self):
        self.tracks = [FakeTrack("audio")]

    def get_tracks(self) -> list[FakeTrack]:
        return self.tracks


class FakeMediaDevices:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.streams: list[FakeStream] = []
        self.constraints: list[MediaConstraints] = []

    async def acquire(self, constraints: MediaConstraints) -> FakeStream:
        self.constraints.append(constraints)
        if self.error is not None:
            raise self.error
        stream = FakeStream()
        self.streams.append(stream)
        return stream


class FakeQuestionSource:
    def __init__(self, questions: list[Question] | None = None, fail: bool = False):
        self.questions = questions or []
        self.fail = fail
        self.calls: list[tuple[str, int]] = []

    async def generate_questions(self, technology_stack: str, count: int) -> list[Question]:
        self.calls.append((technology_stack, count))
        if self.fail:
            raise ConnectionError("question service unreachable")
        return self.questions[:count]


async def settle(rounds: int = 10) -> None:
    """Let spawned tasks run to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def questions() -> list[Question]:
    """Three questions, one per common type."""
    return [
        Question(id="q1", type=QuestionType.TECHNICAL, text="What is the virtual DOM?"),
        Question(id="q2", type=QuestionType.BEHAVIORAL, text="Tell me about a difficult deadline."),
        Question(id="q3", type=QuestionType.SYSTEM_DESIGN, text="Design a URL shortener."),
    ]


@pytest.fixture
def make_orchestrator(questions: list[Question]) -> Callable[..., InterviewOrchestrator]:
    """Factory building an orchestrator with manual ticking."""

    def factory(
        config: InterviewConfig | None = None,
        evaluator: FakeEvaluator | None = None,
        recognizer: FakeRecognizer | None = None,
        synthesizer: FakeSynthesizer | None = None,
        media_devices: FakeMediaDevices | None = None,
        question_list: list[Question] | None = None,
        auto_tick: bool = False,
    ) -> InterviewOrchestrator:
        config = config or InterviewConfig()
        return InterviewOrchestrator(
            questions=question_list or questions,
            config=config,
            evaluation_engine=EvaluationEngine(
                evaluator=evaluator,
                scale=config.score_scale,
                skip_policy=config.skip_policy,
                technology_stack=config.technology_stack,
            ),
            synthesizer=synthesizer,
            speech_engine=SpeechCaptureEngine(recognizer=recognizer, restart_delay=0.01),
            media_devices=media_devices,
            auto_tick=auto_tick,
        )

    return factory
