"""
Interview session and state models for VoiceScreen
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


TOTAL_SLOTS = 6


class Difficulty(str, Enum):
    """Question difficulty tiers."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @property
    def time_limit_seconds(self) -> int:
        """Answer time allotted to a question of this tier."""
        return TIME_LIMIT_BY_DIFFICULTY[self]


# Slots 1-2 Easy, 3-4 Medium, 5-6 Hard
DIFFICULTY_BY_SLOT: dict[int, Difficulty] = {
    1: Difficulty.EASY,
    2: Difficulty.EASY,
    3: Difficulty.MEDIUM,
    4: Difficulty.MEDIUM,
    5: Difficulty.HARD,
    6: Difficulty.HARD,
}

TIME_LIMIT_BY_DIFFICULTY: dict[Difficulty, int] = {
    Difficulty.EASY: 20,
    Difficulty.MEDIUM: 60,
    Difficulty.HARD: 120,
}


class SessionState(str, Enum):
    """Interview session lifecycle states."""

    IDLE = "idle"
    AWAITING_RESUME_INFO = "awaiting_resume_info"
    READY_TO_START = "ready_to_start"
    IN_PROGRESS = "in_progress"
    EVALUATING = "evaluating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


class CandidateInfo(BaseModel):
    """Candidate identity; any field may still be unknown."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def missing_fields(self) -> list[str]:
        """Identity fields that are still unknown, in display order."""
        return [
            field for field in ("name", "email", "phone")
            if getattr(self, field) is None
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    def merged_with(self, other: "CandidateInfo") -> "CandidateInfo":
        """Overlay the known fields of ``other`` on top of this identity."""
        return CandidateInfo(
            name=other.name or self.name,
            email=other.email or self.email,
            phone=other.phone or self.phone,
        )


class AnswerRecord(BaseModel):
    """The captured answer for one slot and, later, its evaluation."""

    slot_number: int = Field(..., ge=1, le=TOTAL_SLOTS)
    audio: bytes | None = None  # None means no audio was captured
    auto_submitted: bool = True
    transcript: str | None = None
    score: int = Field(default=0, ge=0, le=10)
    feedback: str = ""

    @property
    def has_audio(self) -> bool:
        return bool(self.audio)


class QuestionSlot(BaseModel):
    """One of the six fixed positions in the interview."""

    slot_number: int = Field(..., ge=1, le=TOTAL_SLOTS)
    difficulty: Difficulty
    question: str
    answer: AnswerRecord | None = None

    @property
    def time_limit_seconds(self) -> int:
        return self.difficulty.time_limit_seconds

    @classmethod
    def for_slot(cls, slot_number: int, question: str) -> "QuestionSlot":
        """Build a slot with the fixed difficulty for its position."""
        return cls(
            slot_number=slot_number,
            difficulty=DIFFICULTY_BY_SLOT[slot_number],
            question=question,
        )


class SessionResult(BaseModel):
    """Terminal aggregate produced once a session completes."""

    questions: list[str] = Field(default_factory=list)
    transcripts: list[str] = Field(default_factory=list)
    scores: list[int] = Field(default_factory=list)
    feedback: list[str] = Field(default_factory=list)
    average_score: float = 0.0
    summary: str = ""
    completed_at: datetime = Field(default_factory=datetime.utcnow)


class Session(BaseModel):
    """Complete interview session state."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    candidate: CandidateInfo = Field(default_factory=CandidateInfo)
    slots: list[QuestionSlot] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0, le=TOTAL_SLOTS)  # 1-based, 0 = not started
    state: SessionState = SessionState.IDLE
    failure_reason: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: datetime | None = None
    result: SessionResult | None = None

    @field_validator("slots")
    @classmethod
    def _exactly_six_slots(cls, slots: list[QuestionSlot]) -> list[QuestionSlot]:
        if slots and len(slots) != TOTAL_SLOTS:
            raise ValueError(f"A session holds exactly {TOTAL_SLOTS} slots, got {len(slots)}")
        return slots

    def get_current_slot(self) -> QuestionSlot | None:
        """Get the slot currently being answered."""
        if self.state != SessionState.IN_PROGRESS or self.current_index == 0:
            return None
        return self.slots[self.current_index - 1]

    @property
    def answers(self) -> list[AnswerRecord]:
        """Finalized answers, in slot order."""
        return [slot.answer for slot in self.slots if slot.answer is not None]
