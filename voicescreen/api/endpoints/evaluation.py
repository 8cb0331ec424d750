"""
Evaluation API endpoints

Stateless access to the batch pipeline and the summary generator,
for hosts that run the interview themselves and only need scoring.
"""

import json
import logging

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from voicescreen.api.dependencies import get_pipeline, get_reasoning
from voicescreen.core.errors import GenerationFailed
from voicescreen.core.result_aggregator import average_score
from voicescreen.models.evaluation import AudioArtifact
from voicescreen.models.interview import (
    DIFFICULTY_BY_SLOT,
    TOTAL_SLOTS,
    CandidateInfo,
    Difficulty,
    QuestionSlot,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class BatchQuestion(BaseModel):
    """One question in a batch payload."""
    question: str
    difficulty: Difficulty | None = None


class BatchPayload(BaseModel):
    """JSON body carried in the ``payload`` form field."""
    questions: list[BatchQuestion] = Field(default_factory=list)


class BatchEvaluationResponse(BaseModel):
    """Per-question transcripts, scores and feedback."""
    transcripts: list[str]
    scores: list[int]
    feedback: list[str]


class SummaryRequest(BaseModel):
    """Request for an interview summary."""
    candidate_name: str | None = None
    questions: list[str]
    answers: list[str]
    scores: list[int]


class SummaryResponse(BaseModel):
    """Generated summary with the average score."""
    summary: str
    average_score: float


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/batch", response_model=BatchEvaluationResponse)
async def batch_evaluate(
    payload: str = Form(...),
    audios: list[UploadFile] = File(default=[]),
) -> BatchEvaluationResponse:
    """
    Transcribe and score up to six recorded answers.

    Each file is matched to its question by a ``q<N>`` tag in its
    filename; untagged or out-of-range files are ignored.
    """
    try:
        batch_payload = BatchPayload.model_validate(json.loads(payload or "{}"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {e}")

    questions = batch_payload.questions
    if not questions:
        raise HTTPException(status_code=400, detail="No questions provided")
    if len(questions) > TOTAL_SLOTS:
        raise HTTPException(status_code=400, detail=f"At most {TOTAL_SLOTS} questions per batch")
    if not audios:
        raise HTTPException(status_code=400, detail="No audio files uploaded")

    slots = [
        QuestionSlot(
            slot_number=number,
            difficulty=item.difficulty or DIFFICULTY_BY_SLOT[number],
            question=item.question,
        )
        for number, item in enumerate(questions, start=1)
    ]
    artifacts = [
        AudioArtifact.from_upload(upload.filename, await upload.read())
        for upload in audios[:TOTAL_SLOTS]
    ]

    batch = await get_pipeline().evaluate(slots, artifacts)

    return BatchEvaluationResponse(
        transcripts=batch.transcripts,
        scores=batch.scores,
        feedback=batch.feedback,
    )


@router.post("/summary", response_model=SummaryResponse)
async def generate_summary(request: SummaryRequest) -> SummaryResponse:
    """Generate a short summary of a finished interview."""
    average = average_score(request.scores)

    try:
        summary = await get_reasoning().summarize(
            candidate=CandidateInfo(name=request.candidate_name),
            average_score=average,
            questions=request.questions,
            answers=request.answers,
            scores=request.scores,
        )
    except GenerationFailed as e:
        logger.error(f"Summary generation failed: {e}")
        raise HTTPException(status_code=503, detail="Failed to generate summary")

    return SummaryResponse(summary=summary, average_score=average)
