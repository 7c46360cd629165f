"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

import logging

from hyrily.config.settings import get_settings
from hyrily.core.ai_reasoning import AIReasoningLayer
from hyrily.core.report_generator import ReportGenerator
from hyrily.core.session_manager import InterviewSessionManager
from hyrily.core.session_store import InMemorySessionRepository

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_ai_reasoning: AIReasoningLayer | None = None
_session_manager: InterviewSessionManager | None = None
_report_generator: ReportGenerator | None = None


def get_ai_reasoning() -> AIReasoningLayer | None:
    """
    Get the AI reasoning layer singleton.

    Returns None when no Gemini API key is configured; sessions then use
    the static questions and neutral scores.
    """
    global _ai_reasoning

    if _ai_reasoning is None:
        settings = get_settings()
        if not settings.gemini_api_key:
            logger.info("GEMINI_API_KEY not set, AI question generation and scoring disabled")
            return None
        _ai_reasoning = AIReasoningLayer(settings)

    return _ai_reasoning


def get_session_manager() -> InterviewSessionManager:
    """
    Get the session manager singleton.

    Lazily initializes all required components.
    """
    global _session_manager

    if _session_manager is None:
        ai_reasoning = get_ai_reasoning()
        _session_manager = InterviewSessionManager(
            repository=InMemorySessionRepository(),
            question_source=ai_reasoning,
            evaluator=ai_reasoning,
            settings=get_settings(),
        )

    return _session_manager


def get_report_generator() -> ReportGenerator:
    """Get the report generator singleton."""
    global _report_generator

    if _report_generator is None:
        _report_generator = ReportGenerator()

    return _report_generator


async def cleanup():
    """Cleanup resources on shutdown."""
    global _ai_reasoning, _session_manager, _report_generator

    if _session_manager:
        await _session_manager.cleanup()
        _session_manager = None

    if _ai_reasoning:
        await _ai_reasoning.close()
        _ai_reasoning = None

    _report_generator = None
