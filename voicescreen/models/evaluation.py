"""
Evaluation models for VoiceScreen

Structures exchanged between the batch pipeline, the scoring
collaborator and the result aggregator.
"""

import re
from enum import Enum

from pydantic import BaseModel, Field

from voicescreen.models.interview import TOTAL_SLOTS


NO_ANSWER_FEEDBACK = "No answer provided or audio was unintelligible"
EVALUATION_FAILED_FEEDBACK = "Evaluation failed"

_SLOT_TAG = re.compile(r"q(\d+)", re.IGNORECASE)


class TranscriptionState(str, Enum):
    """Status of a job at the transcription service."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptionStatus(BaseModel):
    """One poll result from the transcription service."""

    state: TranscriptionState
    text: str | None = None
    error: str | None = None


class TranscriptionJob(BaseModel):
    """Bookkeeping for one in-flight transcription."""

    job_id: str
    attempts: int = 0
    max_attempts: int
    poll_interval_seconds: float

    @property
    def deadline_seconds(self) -> float:
        """Hard ceiling on time spent polling this job."""
        return self.max_attempts * self.poll_interval_seconds

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


class ScoreResult(BaseModel):
    """Score and feedback for a single answer."""

    score: int = Field(default=0, ge=0, le=10)
    feedback: str = ""

    @classmethod
    def no_answer(cls) -> "ScoreResult":
        return cls(score=0, feedback=NO_ANSWER_FEEDBACK)

    @classmethod
    def failed(cls) -> "ScoreResult":
        return cls(score=0, feedback=EVALUATION_FAILED_FEEDBACK)


class AudioArtifact(BaseModel):
    """
    A submitted answer recording tagged with its originating slot.

    ``slot_number`` is 1-based; ``None`` marks an untagged artifact.
    """

    slot_number: int | None = None
    data: bytes = b""
    filename: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.data

    @classmethod
    def from_upload(cls, filename: str | None, data: bytes) -> "AudioArtifact":
        """Build an artifact from an uploaded file named like ``q3.webm``."""
        match = _SLOT_TAG.search(filename or "")
        slot_number = int(match.group(1)) if match else None
        return cls(slot_number=slot_number, data=data, filename=filename)


class BatchEvaluation(BaseModel):
    """Parallel per-slot outputs of the batch pipeline."""

    transcripts: list[str] = Field(default_factory=lambda: [""] * TOTAL_SLOTS)
    scores: list[int] = Field(default_factory=lambda: [0] * TOTAL_SLOTS)
    feedback: list[str] = Field(default_factory=lambda: [""] * TOTAL_SLOTS)

    @classmethod
    def sized(cls, count: int) -> "BatchEvaluation":
        return cls(
            transcripts=[""] * count,
            scores=[0] * count,
            feedback=[""] * count,
        )
