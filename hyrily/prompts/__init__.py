"""
AI prompt templates for Hyrily

Contains structured prompts for:
- Question generation
- Answer evaluation
"""

from hyrily.prompts.interviewer import InterviewerPrompts
from hyrily.prompts.evaluator import EvaluatorPrompts

__all__ = [
    "InterviewerPrompts",
    "EvaluatorPrompts",
]
