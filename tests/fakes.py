"""
Test doubles for the VoiceScreen collaborators.

Every fake records how it was called so tests can assert on the
interaction as well as the outcome.
"""

import asyncio
import json
from typing import Callable

from voicescreen.config.settings import Settings
from voicescreen.core.errors import DeviceUnavailable, GenerationFailed
from voicescreen.models.evaluation import TranscriptionState, TranscriptionStatus


def make_settings(**overrides) -> Settings:
    """Settings that never read the environment."""
    values = {
        "llm_base_url": "https://llm.test",
        "llm_api_key": "test-key",
        "assemblyai_api_key": "test-key",
        "assemblyai_base_url": "https://transcribe.test",
        "announce_seconds": 3,
        "pre_response_seconds": 5,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def instant_sleep(seconds: float) -> None:
    """Stand-in for asyncio.sleep that only yields to the event loop."""
    await asyncio.sleep(0)


class RecordingSleep:
    """Instant sleep that remembers every requested delay."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


# =============================================================================
# Text generation
# =============================================================================

QUESTION_MARKER = "Generate one high-quality"
SCORING_MARKER = "You are an evaluator"
SUMMARY_MARKER = "interview summary"
RESUME_MARKER = "Extract the candidate's"


class ScriptedTextGenerator:
    """
    Text generator driven by a handler or a queue of responses.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(
        self,
        responses: list | None = None,
        handler: Callable[[str], object] | None = None,
    ):
        self.responses = list(responses or [])
        self.handler = handler
        self.prompts: list[str] = []

    def prompts_containing(self, marker: str) -> list[str]:
        return [prompt for prompt in self.prompts if marker in prompt]

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.handler is not None:
            result = self.handler(prompt)
        elif self.responses:
            result = self.responses.pop(0)
        else:
            raise GenerationFailed("No scripted response left")

        if isinstance(result, Exception):
            raise result
        return result


def interview_handler(
    score: int = 7,
    summary: str = "Solid fundamentals across the board.",
    fail_question: int | None = None,
) -> Callable[[str], object]:
    """Handler answering question, scoring and summary prompts."""

    def handle(prompt: str) -> object:
        if QUESTION_MARKER in prompt:
            for number in range(1, 7):
                if f"Question number: Q{number} of" in prompt:
                    if number == fail_question:
                        return GenerationFailed(f"quota exceeded on Q{number}")
                    return f"Question {number}?"
        if SCORING_MARKER in prompt:
            return json.dumps({"score": score, "feedback": "Clear and correct."})
        if SUMMARY_MARKER in prompt:
            return summary
        return GenerationFailed("Unexpected prompt")

    return handle


# =============================================================================
# Transcription
# =============================================================================

class FakeTranscriptionService:
    """
    Transcription service that resolves jobs from a per-audio script.

    ``script`` maps an audio blob to the list of statuses returned by
    successive polls; the final status repeats once the list is exhausted.
    """

    def __init__(self, script: dict[bytes, list[TranscriptionStatus]] | None = None):
        self.script = script or {}
        self.uploads: list[bytes] = []
        self.submissions: list[tuple[str, str]] = []
        self.polls: dict[str, int] = {}
        self.upload_error: Exception | None = None
        self.submit_error: Exception | None = None

    @staticmethod
    def completed(text: str) -> TranscriptionStatus:
        return TranscriptionStatus(state=TranscriptionState.COMPLETED, text=text)

    @staticmethod
    def pending() -> TranscriptionStatus:
        return TranscriptionStatus(state=TranscriptionState.PENDING)

    @staticmethod
    def failed(error: str = "audio too short") -> TranscriptionStatus:
        return TranscriptionStatus(state=TranscriptionState.FAILED, error=error)

    async def upload(self, audio: bytes) -> str:
        if self.upload_error:
            raise self.upload_error
        self.uploads.append(audio)
        return f"upload://{audio.decode(errors='replace')}"

    async def submit_job(self, locator: str, language: str) -> str:
        if self.submit_error:
            raise self.submit_error
        self.submissions.append((locator, language))
        return locator.removeprefix("upload://")

    async def get_status(self, job_id: str) -> TranscriptionStatus:
        count = self.polls.get(job_id, 0)
        self.polls[job_id] = count + 1

        statuses = self.script.get(job_id.encode(), [self.completed(f"transcript of {job_id}")])
        return statuses[min(count, len(statuses) - 1)]


# =============================================================================
# Devices
# =============================================================================

class FakeSpeech:
    """Speech that finishes immediately."""

    def __init__(self, error: Exception | None = None):
        self.spoken: list[str] = []
        self.cancel_count = 0
        self.error = error

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        if self.error:
            raise self.error

    def cancel(self) -> None:
        self.cancel_count += 1


class FakeAudioInput:
    """
    Audio input whose flush returns the next scripted take.

    ``takes`` lists the bytes produced by successive recordings; once
    exhausted every recording yields ``default_take``.
    """

    def __init__(
        self,
        takes: list[bytes] | None = None,
        default_take: bytes = b"",
        granted: bool = True,
    ):
        self.takes = list(takes or [])
        self.default_take = default_take
        self.granted = granted
        self.sink = None
        self.acquire_count = 0
        self.release_count = 0
        self.flush_error: Exception | None = None

    async def acquire(self, on_chunk) -> None:
        if not self.granted:
            raise DeviceUnavailable("Permission denied")
        self.acquire_count += 1
        self.sink = on_chunk

    async def flush(self) -> bytes:
        if self.flush_error:
            raise self.flush_error
        if self.takes:
            return self.takes.pop(0)
        return self.default_take

    async def release(self) -> None:
        self.release_count += 1
        self.sink = None
