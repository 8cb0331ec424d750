"""
Result Aggregator for VoiceScreen

Folds per-slot evaluations into the terminal session result:
- Average score
- Synthesized summary
"""

import logging

from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.errors import GenerationFailed
from voicescreen.models.evaluation import BatchEvaluation
from voicescreen.models.interview import CandidateInfo, QuestionSlot, SessionResult

logger = logging.getLogger(__name__)

NO_RESPONSES_SUMMARY = (
    "{name} did not provide spoken responses to the questions during the interview. "
    "As a result, no assessment of technical accuracy, completeness, approach, or "
    "clarity could be made. Consider rescheduling the interview or ensuring "
    "microphone access before retrying."
)


def average_score(scores: list[int]) -> float:
    """Mean of the scores rounded to one decimal place; 0 for no scores."""
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


class ResultAggregator:
    """
    Produces the SessionResult for a finished interview.

    Summary generation is best effort: a failure leaves the summary
    empty but the result, including the average, is still produced.
    """

    def __init__(self, reasoning: AIReasoningLayer):
        self.reasoning = reasoning

    def no_responses(
        self,
        slots: list[QuestionSlot],
        candidate: CandidateInfo,
    ) -> SessionResult:
        """Result for a session in which no answer carried any audio."""
        count = len(slots)
        return SessionResult(
            questions=[slot.question for slot in slots],
            transcripts=[""] * count,
            scores=[0] * count,
            feedback=[""] * count,
            average_score=0.0,
            summary=NO_RESPONSES_SUMMARY.format(name=candidate.name or "The candidate"),
        )

    async def aggregate(
        self,
        slots: list[QuestionSlot],
        batch: BatchEvaluation,
        candidate: CandidateInfo,
    ) -> SessionResult:
        """
        Build the terminal result from the pipeline output.

        Args:
            slots: Ordered question slots
            batch: Index-aligned pipeline output
            candidate: Candidate identity, used for the summary

        Returns:
            Complete SessionResult
        """
        if all(not transcript.strip() for transcript in batch.transcripts):
            logger.info("No transcribed answers, using the no-responses summary")
            result = self.no_responses(slots, candidate)
            result.feedback = list(batch.feedback)
            return result

        questions = [slot.question for slot in slots]
        average = average_score(batch.scores)

        try:
            summary = await self.reasoning.summarize(
                candidate=candidate,
                average_score=average,
                questions=questions,
                answers=batch.transcripts,
                scores=batch.scores,
            )
        except GenerationFailed as e:
            logger.warning(f"Summary generation failed, completing without one: {e}")
            summary = ""
        except Exception as e:
            logger.error(f"Unexpected summary error, completing without one: {e}")
            summary = ""

        return SessionResult(
            questions=questions,
            transcripts=list(batch.transcripts),
            scores=list(batch.scores),
            feedback=list(batch.feedback),
            average_score=average,
            summary=summary,
        )
