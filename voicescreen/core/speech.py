"""
Speech synthesis for VoiceScreen

Renders question text as speech with Edge TTS and hands the audio to
the client. Playback completes after the estimated speaking time or
as soon as it is cancelled.
"""

import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)

SpeechDelivery = Callable[[dict[str, Any]], Awaitable[None]]


class SpeechSynthesizer(Protocol):
    """Speech collaborator contract."""

    async def speak(self, text: str) -> None:
        """Render text as speech; returns when playback ends or is cancelled."""
        ...

    def cancel(self) -> None:
        """Stop any playback in progress."""
        ...


def estimate_duration_seconds(text: str, words_per_minute: int = 150) -> float:
    """Rough speaking time for a piece of text."""
    word_count = len(text.split())
    return word_count / words_per_minute * 60


class EdgeSpeechSynthesizer:
    """
    Edge TTS (Microsoft) speech for one session.

    ``deliver`` receives the encoded audio payload, e.g. to forward it
    over the session's websocket.
    """

    def __init__(
        self,
        voice: str = "en-US-JennyNeural",
        deliver: SpeechDelivery | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.voice = voice
        self.deliver = deliver
        self._sleep = sleep
        self._cancelled = asyncio.Event()

    async def synthesize(self, text: str) -> dict[str, Any]:
        """Generate speech audio for text."""
        import edge_tts

        communicate = edge_tts.Communicate(text, self.voice)

        # Collect audio chunks
        audio_chunks = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio_chunks.append(chunk["data"])

        audio_data = b"".join(audio_chunks)

        return {
            "audio_data": base64.b64encode(audio_data).decode("utf-8"),
            "format": "mp3",
            "sample_rate": 24000,
            "duration_seconds": estimate_duration_seconds(text),
        }

    async def speak(self, text: str) -> None:
        self._cancelled.clear()

        audio = await self.synthesize(text)
        if self._cancelled.is_set():
            return
        if self.deliver:
            await self.deliver(audio)

        playback = asyncio.create_task(self._sleep(audio["duration_seconds"]))
        cancelled = asyncio.create_task(self._cancelled.wait())
        try:
            await asyncio.wait({playback, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            playback.cancel()
            cancelled.cancel()

    def cancel(self) -> None:
        self._cancelled.set()
