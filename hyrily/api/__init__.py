"""
API layer for Hyrily

Contains FastAPI routers for:
- Interview sessions (REST and WebSocket)
- Company sessions and candidate ranking
"""

from hyrily.api.router import api_router

__all__ = ["api_router"]
