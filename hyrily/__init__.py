"""
Hyrily - AI Interview Practice Platform

Candidates rehearse interviews by text or voice with an AI interviewer;
companies run shared interview sessions and rank their candidates.
"""

__version__ = "0.1.0"
__author__ = "Hyrily Team"
