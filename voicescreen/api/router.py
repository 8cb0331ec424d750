"""
Main API router for VoiceScreen

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from voicescreen.api.endpoints import audio, evaluation, interview

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    evaluation.router,
    prefix="/evaluation",
    tags=["Evaluation"]
)

api_router.include_router(
    audio.router,
    prefix="/audio",
    tags=["Audio"]
)
