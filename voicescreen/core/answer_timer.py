"""
Answer Capture Timer - per-question lifecycle.

Phases for one question slot:
    ANNOUNCE (3s) → SPEAK → PRE_RESPOND (5s) → ANSWERING (time limit) → SUBMITTED

Recording starts on the final PRE_RESPOND tick. Reaching zero in
ANSWERING submits the answer; a manual submit during ANSWERING takes
the same path. Either way the answer is submitted exactly once.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from voicescreen.core.audio_recorder import AudioRecorder
from voicescreen.core.errors import DeviceUnavailable
from voicescreen.core.speech import SpeechSynthesizer
from voicescreen.models.interview import QuestionSlot

logger = logging.getLogger(__name__)


class CapturePhase(str, Enum):
    """Phases of a single question."""

    IDLE = "idle"
    ANNOUNCE = "announce"
    SPEAK = "speak"
    PRE_RESPOND = "pre_respond"
    ANSWERING = "answering"
    SUBMITTED = "submitted"


SubmitCallback = Callable[[int, bytes | None, bool], Awaitable[None]]
TickCallback = Callable[[CapturePhase, int], Awaitable[None]]


class AnswerCaptureTimer:
    """
    Drives one question slot from announcement to submission.

    Args:
        slot: The question being asked
        recorder: Session audio recorder
        speech: Speech collaborator used to read the question
        on_submit: Called once with (slot number, blob or None, auto)
        on_tick: Optional progress callback with (phase, seconds remaining)
        sleep: Injectable one-second clock
    """

    def __init__(
        self,
        slot: QuestionSlot,
        recorder: AudioRecorder,
        speech: SpeechSynthesizer,
        on_submit: SubmitCallback,
        on_tick: TickCallback | None = None,
        announce_seconds: int = 3,
        pre_response_seconds: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.slot = slot
        self.recorder = recorder
        self.speech = speech
        self.on_submit = on_submit
        self.on_tick = on_tick
        self.announce_seconds = announce_seconds
        self.pre_response_seconds = pre_response_seconds
        self._sleep = sleep

        self.phase = CapturePhase.IDLE
        self.remaining = 0
        self._submitted = False
        self._submitted_event = asyncio.Event()

    @property
    def submitted(self) -> bool:
        return self._submitted

    async def run(self) -> None:
        """Run the full phase sequence for the slot."""
        # Announce
        await self._enter(CapturePhase.ANNOUNCE, self.announce_seconds)
        while self.remaining > 0:
            await self._sleep(1)
            if self._submitted:
                return
            self.remaining -= 1
            await self._tick()

        # Speak
        await self._enter(CapturePhase.SPEAK, 0)
        try:
            await self.speech.speak(self.slot.question)
        except Exception as e:
            logger.error(f"Speech playback failed for Q{self.slot.slot_number}: {e}")
        if self._submitted:
            return

        # Pre-respond, recording starts on the final tick
        await self._enter(CapturePhase.PRE_RESPOND, self.pre_response_seconds)
        if self.remaining <= 1:
            await self._start_recording()
        while self.remaining > 0:
            await self._sleep(1)
            if self._submitted:
                return
            self.remaining -= 1
            await self._tick()
            if self.remaining == 1:
                await self._start_recording()

        # Answering
        await self._enter(CapturePhase.ANSWERING, self.slot.time_limit_seconds)
        while self.remaining > 0:
            await self._wait_one_second()
            if self._submitted:
                return
            self.remaining -= 1
            await self._tick()

        await self._submit(auto=True)

    async def submit_now(self, auto: bool = False) -> bool:
        """
        Submit the answer before the countdown ends.

        Only accepted while ANSWERING.

        Returns:
            True if this call submitted the answer
        """
        if self.phase != CapturePhase.ANSWERING:
            return False
        return await self._submit(auto=auto)

    async def abort(self) -> None:
        """Tear down without submitting (session reset)."""
        self._submitted = True
        self._submitted_event.set()
        self.phase = CapturePhase.SUBMITTED
        self.speech.cancel()
        try:
            await self.recorder.stop()
        except Exception as e:
            logger.error(f"Failed to stop recording for Q{self.slot.slot_number}: {e}")

    async def _submit(self, auto: bool) -> bool:
        # Flag flips before any await so a racing timeout and skip submit once
        if self._submitted:
            return False
        self._submitted = True
        self._submitted_event.set()
        self.phase = CapturePhase.SUBMITTED

        self.speech.cancel()
        blob = None
        try:
            blob = await self.recorder.stop()
        except Exception as e:
            logger.error(f"Failed to finalize recording for Q{self.slot.slot_number}: {e}")

        logger.info(
            f"Q{self.slot.slot_number} submitted ({'timeout' if auto else 'skip'}, "
            f"{len(blob) if blob else 0} bytes)"
        )
        await self.on_submit(self.slot.slot_number, blob, auto)
        return True

    async def _start_recording(self) -> None:
        if self.recorder.is_recording:
            return
        try:
            await self.recorder.start(self.slot.slot_number)
        except DeviceUnavailable as e:
            logger.warning(f"Recording unavailable for Q{self.slot.slot_number}: {e}")

    async def _wait_one_second(self) -> None:
        tick = asyncio.create_task(self._sleep(1))
        skipped = asyncio.create_task(self._submitted_event.wait())
        try:
            await asyncio.wait({tick, skipped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            tick.cancel()
            skipped.cancel()

    async def _enter(self, phase: CapturePhase, seconds: int) -> None:
        self.phase = phase
        self.remaining = seconds
        await self._tick()

    async def _tick(self) -> None:
        if not self.on_tick:
            return
        try:
            await self.on_tick(self.phase, self.remaining)
        except Exception as e:
            logger.error(f"Tick callback error: {e}")
