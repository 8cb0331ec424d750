"""
Audio API endpoints

Handles:
- Speech-to-text transcription of a single recording
"""

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import BaseModel

from voicescreen.api.dependencies import get_pipeline
from voicescreen.core.errors import TranscriptionError, TranscriptionTimedOut

logger = logging.getLogger(__name__)

router = APIRouter()


class TranscribeResponse(BaseModel):
    """Response with transcribed text."""
    transcript: str


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe_audio(audio: UploadFile = File(...)) -> TranscribeResponse:
    """
    Transcribe one uploaded recording.

    Accepts audio file upload.
    """
    audio_data = await audio.read()
    if not audio_data:
        raise HTTPException(status_code=400, detail="No audio file uploaded")

    try:
        transcript = await get_pipeline().poller.transcribe(audio_data)
    except TranscriptionTimedOut as e:
        raise HTTPException(status_code=504, detail=str(e))
    except TranscriptionError as e:
        logger.error(f"Transcription of {audio.filename!r} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Transcription failed: {e}")

    return TranscribeResponse(transcript=transcript)
