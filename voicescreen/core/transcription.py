"""
Transcription for VoiceScreen

Handles:
- The transcription collaborator contract (upload, submit, status)
- An AssemblyAI implementation of that contract over httpx
- Polling one audio blob through the three-step protocol

The service is never pushed to; jobs are polled at a fixed cadence
until they complete, fail, or exhaust the attempt ceiling.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Protocol

import httpx

from voicescreen.config.settings import Settings
from voicescreen.core.errors import (
    SubmitFailed,
    TranscriptionError,
    TranscriptionFailed,
    TranscriptionTimedOut,
    UploadFailed,
)
from voicescreen.models.evaluation import (
    TranscriptionJob,
    TranscriptionState,
    TranscriptionStatus,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

_UPLOAD_CHUNK_BYTES = 64 * 1024


class TranscriptionService(Protocol):
    """Transcription collaborator contract."""

    async def upload(self, audio: bytes) -> str:
        """Upload audio and return an opaque locator."""
        ...

    async def submit_job(self, locator: str, language: str) -> str:
        """Request transcription of an uploaded locator and return a job id."""
        ...

    async def get_status(self, job_id: str) -> TranscriptionStatus:
        """Return the current status of a job."""
        ...


class AssemblyAIClient:
    """
    AssemblyAI v2 REST implementation of the transcription contract.

    Audio is staged in a temporary file and streamed from disk; the file
    is removed whether or not the upload succeeds.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.staging_dir = Path(settings.audio_staging_dir)
        self.client = httpx.AsyncClient(
            base_url=settings.assemblyai_base_url.rstrip("/"),
            headers={"authorization": settings.assemblyai_api_key},
            timeout=60.0,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _stage(self, audio: bytes) -> Path:
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            prefix="ans-", suffix=".webm", dir=self.staging_dir, delete=False
        ) as f:
            f.write(audio)
            return Path(f.name)

    @staticmethod
    async def _stream_file(path: Path):
        with open(path, "rb") as f:
            while True:
                chunk = f.read(_UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                yield chunk

    async def upload(self, audio: bytes) -> str:
        try:
            staged = self._stage(audio)
        except OSError as e:
            raise UploadFailed(f"Could not stage audio: {e}") from e

        try:
            response = await self.client.post("/v2/upload", content=self._stream_file(staged))
            response.raise_for_status()
            upload_url = response.json().get("upload_url")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"AssemblyAI upload error: {e}")
            raise UploadFailed(str(e)) from e
        finally:
            staged.unlink(missing_ok=True)

        if not upload_url:
            raise UploadFailed("Upload response carried no upload_url")
        return upload_url

    async def submit_job(self, locator: str, language: str) -> str:
        try:
            response = await self.client.post(
                "/v2/transcript",
                json={"audio_url": locator, "language_code": language},
            )
            response.raise_for_status()
            job_id = response.json().get("id")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"AssemblyAI submit error: {e}")
            raise SubmitFailed(str(e)) from e

        if not job_id:
            raise SubmitFailed("Submit response carried no job id")
        return job_id

    async def get_status(self, job_id: str) -> TranscriptionStatus:
        try:
            response = await self.client.get(f"/v2/transcript/{job_id}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"AssemblyAI status error for job {job_id}: {e}")
            raise TranscriptionFailed(str(e)) from e

        status = data.get("status")
        if status == "completed":
            return TranscriptionStatus(state=TranscriptionState.COMPLETED, text=data.get("text") or "")
        if status in ("error", "failed"):
            return TranscriptionStatus(state=TranscriptionState.FAILED, error=data.get("error"))
        # queued / processing
        return TranscriptionStatus(state=TranscriptionState.PENDING)


class TranscriptionPoller:
    """
    Runs one audio blob through upload, submit and poll.

    Every failure surfaces as a TranscriptionError subclass so callers
    can degrade the affected answer without inspecting service details.
    """

    def __init__(
        self,
        service: TranscriptionService,
        language: str = "en",
        poll_interval_seconds: float = 2.0,
        max_attempts: int = 30,
        sleep: Sleep = asyncio.sleep,
    ):
        self.service = service
        self.language = language
        self.poll_interval_seconds = poll_interval_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        service: TranscriptionService,
        settings: Settings,
        sleep: Sleep = asyncio.sleep,
    ) -> "TranscriptionPoller":
        return cls(
            service,
            language=settings.transcription_language,
            poll_interval_seconds=settings.transcription_poll_interval_seconds,
            max_attempts=settings.transcription_max_poll_attempts,
            sleep=sleep,
        )

    async def transcribe(self, audio: bytes) -> str:
        """
        Transcribe one non-empty audio blob.

        Returns:
            Transcript text (possibly empty)

        Raises:
            UploadFailed, SubmitFailed, TranscriptionFailed, TranscriptionTimedOut
        """
        try:
            locator = await self.service.upload(audio)
        except TranscriptionError:
            raise
        except Exception as e:
            raise UploadFailed(str(e)) from e

        try:
            job_id = await self.service.submit_job(locator, self.language)
        except TranscriptionError:
            raise
        except Exception as e:
            raise SubmitFailed(str(e)) from e

        job = TranscriptionJob(
            job_id=job_id,
            max_attempts=self.max_attempts,
            poll_interval_seconds=self.poll_interval_seconds,
        )
        return await self._poll(job)

    async def _poll(self, job: TranscriptionJob) -> str:
        while not job.exhausted:
            await self._sleep(job.poll_interval_seconds)
            job.attempts += 1

            try:
                status = await self.service.get_status(job.job_id)
            except TranscriptionError:
                raise
            except Exception as e:
                raise TranscriptionFailed(str(e)) from e

            if status.state == TranscriptionState.COMPLETED:
                logger.debug(f"Job {job.job_id} completed after {job.attempts} polls")
                return status.text or ""
            if status.state == TranscriptionState.FAILED:
                raise TranscriptionFailed(status.error or f"Job {job.job_id} failed")

        raise TranscriptionTimedOut(
            f"Job {job.job_id} still pending after {job.attempts} polls "
            f"({job.deadline_seconds:.0f}s)"
        )
