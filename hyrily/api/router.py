"""
Main API router for Hyrily

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from hyrily.api.endpoints import company, interview

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    company.router,
    prefix="/company",
    tags=["Company"]
)
