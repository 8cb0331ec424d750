"""
Interview API endpoints

Handles interview session lifecycle:
- Creating sessions
- Collecting candidate identity
- Starting interviews
- Advancing answers
- Results and reset
"""

import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from voicescreen.api.dependencies import get_registry
from voicescreen.core.errors import (
    DeviceUnavailable,
    InterviewError,
    SessionNotFound,
    StateTransitionError,
)
from voicescreen.core.session_registry import SessionHandle
from voicescreen.models.interview import CandidateInfo, SessionResult, SessionState

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request model for session creation."""
    microphone_granted: bool = False


class SessionCreatedResponse(BaseModel):
    """Response model for session creation."""
    session_id: str
    state: str


class ResumeTextRequest(BaseModel):
    """Plain resume text supplied by the host."""
    resume_text: str


class ResumeInfoRequest(BaseModel):
    """Identity fields filled in by the candidate."""
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ResumeInfoResponse(BaseModel):
    """Identity known so far and what is still missing."""
    session_id: str
    state: str
    candidate: CandidateInfo
    missing_fields: list[str]


class MicrophoneRequest(BaseModel):
    """Microphone permission reported by the client."""
    granted: bool


class StartResponse(BaseModel):
    """Response after starting the interview."""
    session_id: str
    state: str
    question_number: int


class AdvanceRequest(BaseModel):
    """Request model for finalizing the current answer."""
    manual: bool = True


class AdvanceResponse(BaseModel):
    """Response after an advance request."""
    accepted: bool
    state: str
    question_number: int


class CurrentQuestionResponse(BaseModel):
    """The question currently being asked, if any."""
    session_id: str
    state: str
    question_number: int
    difficulty: str | None = None
    question: str | None = None
    time_limit_seconds: int | None = None
    phase: str | None = None
    time_remaining: int = 0


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    state: str
    question_number: int
    answers_captured: int
    failure_reason: str | None = None


# ============================================================================
# HELPERS
# ============================================================================

def _get_handle(session_id: str) -> SessionHandle:
    try:
        return get_registry().get(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")


def _resume_response(handle: SessionHandle) -> ResumeInfoResponse:
    session = handle.machine.session
    return ResumeInfoResponse(
        session_id=session.session_id,
        state=session.state.value,
        candidate=session.candidate,
        missing_fields=session.candidate.missing_fields,
    )


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/session", response_model=SessionCreatedResponse)
async def create_session(request: CreateSessionRequest | None = None) -> SessionCreatedResponse:
    """Create a new interview session in the idle state."""
    granted = request.microphone_granted if request else False
    handle = get_registry().create(microphone_granted=granted)

    return SessionCreatedResponse(
        session_id=handle.session_id,
        state=handle.machine.state.value,
    )


@router.post("/{session_id}/resume/text", response_model=ResumeInfoResponse)
async def extract_resume(session_id: str, request: ResumeTextRequest) -> ResumeInfoResponse:
    """
    Extract name, email and phone from resume text.

    Fields the resume does not reveal are reported as missing.
    """
    handle = _get_handle(session_id)

    try:
        await handle.machine.load_resume(request.resume_text)
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _resume_response(handle)


@router.post("/{session_id}/resume", response_model=ResumeInfoResponse)
async def submit_resume_info(session_id: str, request: ResumeInfoRequest) -> ResumeInfoResponse:
    """Merge identity fields supplied by the candidate."""
    handle = _get_handle(session_id)

    try:
        await handle.machine.submit_resume_info(
            CandidateInfo(name=request.name, email=request.email, phone=request.phone)
        )
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _resume_response(handle)


@router.post("/{session_id}/microphone")
async def set_microphone(session_id: str, request: MicrophoneRequest) -> dict[str, Any]:
    """Record the client's microphone permission."""
    handle = _get_handle(session_id)
    handle.audio_input.set_permission(request.granted)
    return {"session_id": session_id, "microphone_granted": request.granted}


@router.post("/{session_id}/start", response_model=StartResponse)
async def start_interview(session_id: str) -> StartResponse:
    """
    Start the interview.

    Probes the microphone, generates all six questions and begins the first.
    """
    handle = _get_handle(session_id)
    machine = handle.machine

    try:
        state = await machine.start_session()
    except DeviceUnavailable as e:
        raise HTTPException(status_code=412, detail=str(e))
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if state == SessionState.FAILED:
        raise HTTPException(
            status_code=503,
            detail=machine.session.failure_reason or "Question generation failed",
        )

    return StartResponse(
        session_id=session_id,
        state=state.value,
        question_number=machine.session.current_index,
    )


@router.post("/{session_id}/advance", response_model=AdvanceResponse)
async def advance(session_id: str, request: AdvanceRequest | None = None) -> AdvanceResponse:
    """Finalize the current answer before its countdown ends."""
    handle = _get_handle(session_id)
    machine = handle.machine
    manual = request.manual if request else True

    try:
        accepted = await machine.advance(manual=manual)
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return AdvanceResponse(
        accepted=accepted,
        state=machine.state.value,
        question_number=machine.session.current_index,
    )


@router.get("/{session_id}/question", response_model=CurrentQuestionResponse)
async def get_current_question(session_id: str) -> CurrentQuestionResponse:
    """Get the question currently being asked."""
    machine = _get_handle(session_id).machine
    slot = machine.get_current_question()
    phase = machine.capture_phase

    response = CurrentQuestionResponse(
        session_id=session_id,
        state=machine.state.value,
        question_number=machine.session.current_index,
    )
    if slot is not None:
        response.difficulty = slot.difficulty.value
        response.question = slot.question
        response.time_limit_seconds = slot.time_limit_seconds
        response.phase = phase.value if phase else None
        response.time_remaining = machine.time_remaining
    return response


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def get_session_status(session_id: str) -> SessionStatusResponse:
    """Get the current status of an interview session."""
    session = _get_handle(session_id).machine.session

    return SessionStatusResponse(
        session_id=session.session_id,
        state=session.state.value,
        question_number=session.current_index,
        answers_captured=len(session.answers),
        failure_reason=session.failure_reason,
    )


@router.get("/{session_id}/result", response_model=SessionResult)
async def get_result(session_id: str) -> SessionResult:
    """Get the final result of a completed interview."""
    machine = _get_handle(session_id).machine
    result = machine.get_result()

    if machine.state != SessionState.COMPLETED or result is None:
        raise HTTPException(
            status_code=409,
            detail=f"No result in state: {machine.state.value}",
        )
    return result


@router.post("/{session_id}/reset")
async def reset_session(session_id: str) -> dict[str, Any]:
    """Discard all session data and return to idle."""
    machine = _get_handle(session_id).machine

    try:
        await machine.reset()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"session_id": session_id, "state": machine.state.value}


@router.delete("/{session_id}")
async def delete_session(session_id: str) -> dict[str, Any]:
    """Stop a session and forget it."""
    try:
        await get_registry().remove(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")

    return {"session_id": session_id, "status": "deleted"}


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def websocket_interview(websocket: WebSocket, session_id: str):
    """
    WebSocket endpoint for real-time interview interaction.

    Message types:
    - audio_chunk: Encoded microphone audio (base64 in ``data``)
    - microphone: Microphone permission (``granted``)
    - advance: Finalize the current answer
    - ping: Keep-alive

    Server sends:
    - state_change: Session state updated
    - tick: Countdown progress for the current question
    - question_audio: Synthesized speech for the current question
    - error: Error occurred
    """
    await websocket.accept()

    try:
        handle = get_registry().get(session_id)
    except SessionNotFound:
        await websocket.close(code=4004, reason="Session not found")
        return

    machine = handle.machine

    async def forward(event: dict[str, Any]) -> None:
        await websocket.send_json(event)

    machine.on_event(forward)
    await websocket.send_json({
        "type": "state_change",
        "old_state": machine.state.value,
        "new_state": machine.state.value,
        "question_number": machine.session.current_index,
    })

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json({
                    "type": "error",
                    "message": "Messages must be JSON objects",
                })
                continue
            message_type = data.get("type")

            try:
                if message_type == "audio_chunk":
                    chunk = base64.b64decode(data.get("data", ""), validate=True)
                    handle.audio_input.push(chunk)

                elif message_type == "microphone":
                    handle.audio_input.set_permission(bool(data.get("granted")))

                elif message_type == "advance":
                    accepted = await machine.advance(manual=data.get("manual", True))
                    await websocket.send_json({"type": "advanced", "accepted": accepted})

                elif message_type == "ping":
                    await websocket.send_json({"type": "pong"})

            except (InterviewError, binascii.Error) as e:
                await websocket.send_json({
                    "type": "error",
                    "message": str(e),
                })

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from session {session_id}")
    finally:
        machine.remove_listener(forward)
