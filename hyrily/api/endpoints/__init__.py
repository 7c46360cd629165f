"""
API endpoint modules for Hyrily
"""

from hyrily.api.endpoints import company, interview

__all__ = ["company", "interview"]
