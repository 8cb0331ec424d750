"""
In-memory registry of live interview sessions.

Each entry owns a SessionStateMachine wired to its own streamed audio
input and speech synthesizer. Nothing is persisted.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from voicescreen.config.settings import Settings
from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.audio_recorder import AudioRecorder, StreamedAudioInput
from voicescreen.core.errors import SessionNotFound
from voicescreen.core.evaluation_pipeline import BatchEvaluationPipeline
from voicescreen.core.interview_orchestrator import SessionStateMachine
from voicescreen.core.result_aggregator import ResultAggregator
from voicescreen.core.speech import EdgeSpeechSynthesizer, SpeechSynthesizer

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    """A registered session and the devices it was built with."""

    machine: SessionStateMachine
    audio_input: StreamedAudioInput

    @property
    def session_id(self) -> str:
        return self.machine.session.session_id


class SessionRegistry:
    """Creates, looks up and discards session state machines."""

    def __init__(
        self,
        reasoning: AIReasoningLayer,
        pipeline: BatchEvaluationPipeline,
        aggregator: ResultAggregator,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        speech_factory: Callable[[], SpeechSynthesizer] | None = None,
    ):
        self.reasoning = reasoning
        self.pipeline = pipeline
        self.aggregator = aggregator
        self.settings = settings
        self._sleep = sleep
        self._speech_factory = speech_factory or self._edge_speech
        self._handles: dict[str, SessionHandle] = {}

    def _edge_speech(self) -> SpeechSynthesizer:
        return EdgeSpeechSynthesizer(voice=self.settings.tts_voice, sleep=self._sleep)

    def __len__(self) -> int:
        return len(self._handles)

    def evict_expired(self) -> list[str]:
        """
        Drop sessions that settled more than ``session_ttl_seconds`` ago.

        Settled sessions have no timer or pipeline running, so they are
        discarded without an abandon.

        Returns:
            Ids of the evicted sessions
        """
        cutoff = datetime.utcnow() - timedelta(seconds=self.settings.session_ttl_seconds)
        expired = [
            session_id
            for session_id, handle in self._handles.items()
            if handle.machine.state.is_terminal
            and handle.machine.settled_at is not None
            and handle.machine.settled_at <= cutoff
        ]
        for session_id in expired:
            del self._handles[session_id]
            logger.info(f"Evicted settled session {session_id}")
        return expired

    def create(self, microphone_granted: bool = False) -> SessionHandle:
        """Register a new session in IDLE, evicting expired ones first."""
        self.evict_expired()

        audio_input = StreamedAudioInput(permission_granted=microphone_granted)
        speech = self._speech_factory()
        machine = SessionStateMachine(
            reasoning=self.reasoning,
            pipeline=self.pipeline,
            aggregator=self.aggregator,
            recorder=AudioRecorder(audio_input),
            speech=speech,
            settings=self.settings,
            sleep=self._sleep,
        )

        if isinstance(speech, EdgeSpeechSynthesizer):
            async def deliver_speech(audio: dict) -> None:
                await machine.emit({"type": "question_audio", **audio})

            speech.deliver = deliver_speech

        handle = SessionHandle(machine=machine, audio_input=audio_input)
        self._handles[handle.session_id] = handle
        logger.info(f"Created session {handle.session_id}")
        return handle

    def get(self, session_id: str) -> SessionHandle:
        """
        Look up a session by id.

        Raises:
            SessionNotFound: If no session has that id
        """
        handle = self._handles.get(session_id)
        if handle is None:
            raise SessionNotFound(f"Session {session_id} not found")
        return handle

    async def remove(self, session_id: str) -> None:
        """Reset and discard a session."""
        handle = self._handles.pop(session_id, None)
        if handle is None:
            raise SessionNotFound(f"Session {session_id} not found")
        await handle.machine.abandon()
        logger.info(f"Removed session {session_id}")

    async def close(self) -> None:
        """Abandon every live session."""
        for session_id in list(self._handles):
            await self.remove(session_id)
