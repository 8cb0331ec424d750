"""
Data models and schemas for VoiceScreen

Contains Pydantic models for:
- Interview sessions and question slots
- Candidate identity
- Transcription jobs and audio artifacts
- Evaluation results
"""

from voicescreen.models.interview import (
    AnswerRecord,
    CandidateInfo,
    Difficulty,
    QuestionSlot,
    Session,
    SessionResult,
    SessionState,
)
from voicescreen.models.evaluation import (
    AudioArtifact,
    BatchEvaluation,
    ScoreResult,
    TranscriptionJob,
    TranscriptionState,
    TranscriptionStatus,
)

__all__ = [
    # Interview
    "AnswerRecord",
    "CandidateInfo",
    "Difficulty",
    "QuestionSlot",
    "Session",
    "SessionResult",
    "SessionState",
    # Evaluation
    "AudioArtifact",
    "BatchEvaluation",
    "ScoreResult",
    "TranscriptionJob",
    "TranscriptionState",
    "TranscriptionStatus",
]
