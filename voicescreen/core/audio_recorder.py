"""
Audio capture for VoiceScreen

Handles:
- Acquiring and releasing the audio input device
- Buffering encoded chunks for the active question
- Finalizing the buffer into one blob per answer
"""

import logging
from typing import Callable, Protocol

from voicescreen.core.errors import DeviceUnavailable, StateTransitionError

logger = logging.getLogger(__name__)

ChunkSink = Callable[[bytes], None]


class AudioInput(Protocol):
    """An exclusive audio input device."""

    async def acquire(self, on_chunk: ChunkSink) -> None:
        """Start delivering encoded chunks; raise DeviceUnavailable if not possible."""
        ...

    async def flush(self) -> bytes:
        """Return any encoded bytes still held by the device."""
        ...

    async def release(self) -> None:
        """Stop delivering chunks and free the device."""
        ...


class StreamedAudioInput:
    """
    Input device fed by a remote client.

    The client grants microphone permission and pushes encoded chunks;
    chunks only reach the recorder while the device is acquired.
    """

    def __init__(self, permission_granted: bool = False):
        self.permission_granted = permission_granted
        self._sink: ChunkSink | None = None

    @property
    def acquired(self) -> bool:
        return self._sink is not None

    def set_permission(self, granted: bool) -> None:
        self.permission_granted = granted

    async def acquire(self, on_chunk: ChunkSink) -> None:
        if not self.permission_granted:
            raise DeviceUnavailable("Microphone permission has not been granted")
        if self._sink is not None:
            raise DeviceUnavailable("Audio input is already in use")
        self._sink = on_chunk

    async def flush(self) -> bytes:
        return b""

    async def release(self) -> None:
        self._sink = None

    def push(self, chunk: bytes) -> bool:
        """Deliver a chunk from the client; returns False when nobody is recording."""
        if self._sink is None:
            return False
        self._sink(chunk)
        return True


class AudioRecorder:
    """
    Records one answer at a time into an in-memory buffer.

    ``stop`` always releases the device, even when finalizing the
    buffer fails, so the input never leaks across questions.
    """

    def __init__(self, device: AudioInput):
        self.device = device
        self._chunks: list[bytes] = []
        self._active_slot: int | None = None

    @property
    def is_recording(self) -> bool:
        return self._active_slot is not None

    async def probe(self) -> None:
        """
        Check that the device can be acquired, then release it.

        Raises:
            DeviceUnavailable: If there is no permission or no device
        """
        await self.device.acquire(lambda chunk: None)
        await self.device.release()

    async def start(self, slot_number: int) -> None:
        """
        Begin recording the answer for a slot.

        Raises:
            StateTransitionError: If a recording is already active
            DeviceUnavailable: If the device cannot be acquired
        """
        if self.is_recording:
            raise StateTransitionError(
                f"Recording for Q{self._active_slot} is still active"
            )

        self._chunks = []
        await self.device.acquire(self._on_chunk)
        self._active_slot = slot_number
        logger.debug(f"Recording started for Q{slot_number}")

    def _on_chunk(self, chunk: bytes) -> None:
        if self._active_slot is not None and chunk:
            self._chunks.append(chunk)

    async def stop(self) -> bytes | None:
        """
        Stop recording and return the finalized blob.

        Returns:
            The encoded answer, or None if nothing was captured
        """
        if not self.is_recording:
            return None

        slot_number = self._active_slot
        try:
            tail = await self.device.flush()
            if tail:
                self._chunks.append(tail)
            blob = b"".join(self._chunks)
        finally:
            self._active_slot = None
            self._chunks = []
            try:
                await self.device.release()
            except Exception as e:
                logger.error(f"Failed to release audio input after Q{slot_number}: {e}")

        logger.debug(f"Recording stopped for Q{slot_number}: {len(blob)} bytes")
        return blob or None
