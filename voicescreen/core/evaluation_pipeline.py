"""
Batch Evaluation Pipeline for VoiceScreen

Transcribes and scores every answer of a finished session in one pass.
Each slot runs as its own task and captures its own failures, so one
bad recording or scoring call only ever costs that slot its score.
"""

import asyncio
import logging

from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.errors import ScoringFailed, TranscriptionError
from voicescreen.core.transcription import TranscriptionPoller
from voicescreen.models.evaluation import AudioArtifact, BatchEvaluation, ScoreResult
from voicescreen.models.interview import QuestionSlot

logger = logging.getLogger(__name__)

MIN_ANSWER_CHARS = 3


class BatchEvaluationPipeline:
    """
    Maps tagged audio artifacts back to their slots, transcribes them
    concurrently and scores each transcript.

    ``evaluate`` never raises; the worst outcome for a slot is a zero
    score with explanatory feedback.
    """

    def __init__(self, poller: TranscriptionPoller, reasoning: AIReasoningLayer):
        self.poller = poller
        self.reasoning = reasoning

    async def evaluate(
        self,
        slots: list[QuestionSlot],
        artifacts: list[AudioArtifact],
    ) -> BatchEvaluation:
        """
        Transcribe and score all answers.

        Args:
            slots: Ordered question slots
            artifacts: Submitted recordings, in any order, tagged by slot

        Returns:
            Per-slot transcripts, scores and feedback, index-aligned with ``slots``
        """
        batch = BatchEvaluation.sized(len(slots))
        audio_by_index = self._index_artifacts(artifacts, len(slots))

        logger.info(
            f"Evaluating {len(slots)} slots, {len(audio_by_index)} with audio"
        )

        outcomes = await asyncio.gather(*(
            self._evaluate_slot(slot, audio_by_index.get(index))
            for index, slot in enumerate(slots)
        ))

        for index, (transcript, result) in enumerate(outcomes):
            batch.transcripts[index] = transcript
            batch.scores[index] = result.score
            batch.feedback[index] = result.feedback

        return batch

    def _index_artifacts(
        self,
        artifacts: list[AudioArtifact],
        slot_count: int,
    ) -> dict[int, bytes]:
        """Zero-based slot index to audio bytes; later artifacts win."""
        audio_by_index: dict[int, bytes] = {}
        for artifact in artifacts:
            if artifact.slot_number is None:
                logger.warning(f"Discarding untagged artifact {artifact.filename!r}")
                continue

            index = artifact.slot_number - 1
            if not 0 <= index < slot_count:
                logger.warning(
                    f"Discarding artifact {artifact.filename!r} for out-of-range slot "
                    f"{artifact.slot_number}"
                )
                continue

            if artifact.is_empty:
                audio_by_index.pop(index, None)
                continue

            audio_by_index[index] = artifact.data

        return audio_by_index

    async def _evaluate_slot(
        self,
        slot: QuestionSlot,
        audio: bytes | None,
    ) -> tuple[str, ScoreResult]:
        transcript = await self._transcribe(slot, audio)
        return transcript, await self._score(slot, transcript)

    async def _transcribe(self, slot: QuestionSlot, audio: bytes | None) -> str:
        if not audio:
            return ""

        try:
            return await self.poller.transcribe(audio)
        except TranscriptionError as e:
            logger.warning(
                f"Transcription for Q{slot.slot_number} degraded to empty "
                f"({type(e).__name__}): {e}"
            )
        except Exception as e:
            logger.error(f"Unexpected transcription error for Q{slot.slot_number}: {e}")
        return ""

    async def _score(self, slot: QuestionSlot, transcript: str) -> ScoreResult:
        trimmed = transcript.strip()
        if len(trimmed) < MIN_ANSWER_CHARS:
            return ScoreResult.no_answer()

        try:
            return await self.reasoning.score_answer(
                question=slot.question,
                transcript=trimmed,
                time_limit_seconds=slot.time_limit_seconds,
                difficulty=slot.difficulty,
            )
        except ScoringFailed as e:
            logger.warning(f"Scoring failed for Q{slot.slot_number}: {e}")
        except Exception as e:
            logger.error(f"Unexpected scoring error for Q{slot.slot_number}: {e}")
        return ScoreResult.failed()
