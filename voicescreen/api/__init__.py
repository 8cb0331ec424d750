"""
API layer for VoiceScreen

Contains FastAPI routers for:
- Interview session management
- Batch evaluation and summaries
- Audio transcription
- WebSocket real-time communication
"""

from voicescreen.api.router import api_router

__all__ = ["api_router"]
