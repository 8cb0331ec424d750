"""
Tests for result aggregation.
"""

import pytest

from tests.fakes import SUMMARY_MARKER, ScriptedTextGenerator, make_settings
from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.errors import GenerationFailed
from voicescreen.core.result_aggregator import ResultAggregator, average_score
from voicescreen.models.evaluation import BatchEvaluation
from voicescreen.models.interview import CandidateInfo, QuestionSlot


def _slots() -> list[QuestionSlot]:
    return [QuestionSlot.for_slot(n, f"Question {n}?") for n in range(1, 7)]


def _aggregator(generator: ScriptedTextGenerator) -> ResultAggregator:
    return ResultAggregator(AIReasoningLayer(generator, make_settings()))


class TestAverageScore:
    def test_rounds_to_one_decimal(self):
        assert average_score([10, 10, 10, 0, 0, 0]) == 5.0
        assert average_score([7, 8, 8]) == 7.7

    def test_empty_is_zero(self):
        assert average_score([]) == 0.0


class TestResultAggregator:
    @pytest.mark.asyncio
    async def test_aggregate_with_summary(self):
        generator = ScriptedTextGenerator(["Strong on basics, weaker on scaling."])
        batch = BatchEvaluation(
            transcripts=["a", "b", "c", "", "", ""],
            scores=[10, 10, 10, 0, 0, 0],
            feedback=["f1", "f2", "f3", "", "", ""],
        )

        result = await _aggregator(generator).aggregate(
            _slots(), batch, CandidateInfo(name="Ada Lovelace")
        )

        assert result.average_score == 5.0
        assert result.summary == "Strong on basics, weaker on scaling."
        assert result.questions == [f"Question {n}?" for n in range(1, 7)]
        assert result.scores == [10, 10, 10, 0, 0, 0]
        assert "Ada Lovelace" in generator.prompts_containing(SUMMARY_MARKER)[0]

    @pytest.mark.asyncio
    async def test_summary_failure_still_produces_result(self):
        generator = ScriptedTextGenerator([GenerationFailed("upstream 500")])
        batch = BatchEvaluation(
            transcripts=["an answer"] + [""] * 5,
            scores=[6, 0, 0, 0, 0, 0],
            feedback=["ok"] + [""] * 5,
        )

        result = await _aggregator(generator).aggregate(_slots(), batch, CandidateInfo())

        assert result.summary == ""
        assert result.average_score == 1.0
        assert result.scores == [6, 0, 0, 0, 0, 0]

    @pytest.mark.asyncio
    async def test_blank_transcripts_use_no_responses_summary(self):
        generator = ScriptedTextGenerator()
        batch = BatchEvaluation.sized(6)

        result = await _aggregator(generator).aggregate(
            _slots(), batch, CandidateInfo(name="Grace")
        )

        assert result.average_score == 0.0
        assert result.summary.startswith("Grace did not provide spoken responses")
        assert generator.prompts == []

    def test_no_responses_without_name(self):
        result = _aggregator(ScriptedTextGenerator()).no_responses(_slots(), CandidateInfo())

        assert result.scores == [0] * 6
        assert result.transcripts == [""] * 6
        assert "did not provide spoken responses" in result.summary
        assert result.summary.startswith("The candidate")
