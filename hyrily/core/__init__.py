"""
Core business logic modules for Hyrily

Contains:
- Speech Capture Engine: Resilient continuous speech-to-text
- Interview Orchestrator: State machine for one interview session
- Evaluation Engine: Scoring and aggregation
- AI Reasoning: Question generation and answer evaluation
- Session Manager: Session creation, persistence and company rounds
- Report Generator: Final report compilation
"""

from hyrily.core.speech_capture import SpeechCaptureEngine
from hyrily.core.interview_orchestrator import InterviewOrchestrator, StateTransitionError
from hyrily.core.evaluation_engine import EvaluationEngine
from hyrily.core.ai_reasoning import AIReasoningLayer, AIServiceError
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.core.session_store import InMemorySessionRepository
from hyrily.core.report_generator import ReportGenerator

__all__ = [
    "SpeechCaptureEngine",
    "InterviewOrchestrator",
    "StateTransitionError",
    "EvaluationEngine",
    "AIReasoningLayer",
    "AIServiceError",
    "InterviewSessionManager",
    "InMemorySessionRepository",
    "ReportGenerator",
]
