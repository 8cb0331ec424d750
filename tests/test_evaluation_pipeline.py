"""
Tests for the batch evaluation pipeline.
"""

import json

import pytest

from tests.fakes import (
    SCORING_MARKER,
    FakeTranscriptionService,
    ScriptedTextGenerator,
    instant_sleep,
    make_settings,
)
from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.errors import GenerationFailed
from voicescreen.core.evaluation_pipeline import BatchEvaluationPipeline
from voicescreen.core.transcription import TranscriptionPoller
from voicescreen.models.evaluation import (
    EVALUATION_FAILED_FEEDBACK,
    NO_ANSWER_FEEDBACK,
    AudioArtifact,
)
from voicescreen.models.interview import QuestionSlot


def _slots() -> list[QuestionSlot]:
    return [QuestionSlot.for_slot(n, f"Question {n}?") for n in range(1, 7)]


def _artifacts() -> list[AudioArtifact]:
    return [
        AudioArtifact.from_upload(f"q{n}.webm", f"a{n}".encode())
        for n in range(1, 7)
    ]


def _pipeline(service: FakeTranscriptionService, generator: ScriptedTextGenerator) -> BatchEvaluationPipeline:
    settings = make_settings()
    poller = TranscriptionPoller(service, sleep=instant_sleep)
    return BatchEvaluationPipeline(poller, AIReasoningLayer(generator, settings))


def _scoring(score: int = 8, feedback: str = "Good answer."):
    def handle(prompt: str):
        return json.dumps({"score": score, "feedback": feedback})
    return handle


class TestBatchEvaluationPipeline:
    @pytest.mark.asyncio
    async def test_all_slots_transcribed_and_scored(self):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(handler=_scoring())

        batch = await _pipeline(service, generator).evaluate(_slots(), _artifacts())

        assert batch.transcripts == [f"transcript of a{n}" for n in range(1, 7)]
        assert batch.scores == [8] * 6
        assert batch.feedback == ["Good answer."] * 6
        assert len(generator.prompts_containing(SCORING_MARKER)) == 6

    @pytest.mark.asyncio
    async def test_timeout_on_one_slot_leaves_others_unaffected(self):
        service = FakeTranscriptionService({b"a3": [FakeTranscriptionService.pending()]})
        generator = ScriptedTextGenerator(handler=_scoring())

        batch = await _pipeline(service, generator).evaluate(_slots(), _artifacts())

        assert batch.transcripts[2] == ""
        assert batch.scores[2] == 0
        assert batch.feedback[2] == NO_ANSWER_FEEDBACK
        for index in (0, 1, 3, 4, 5):
            assert batch.transcripts[index] == f"transcript of a{index + 1}"
            assert batch.scores[index] == 8
        assert service.polls["a3"] == 30

    @pytest.mark.asyncio
    async def test_missing_and_empty_artifacts_skip_transcription(self):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(handler=_scoring())
        artifacts = [
            AudioArtifact.from_upload("q1.webm", b"a1"),
            AudioArtifact.from_upload("q2.webm", b""),
        ]

        batch = await _pipeline(service, generator).evaluate(_slots(), artifacts)

        assert service.uploads == [b"a1"]
        assert batch.scores == [8, 0, 0, 0, 0, 0]
        assert batch.feedback[1:] == [NO_ANSWER_FEEDBACK] * 5

    @pytest.mark.asyncio
    async def test_untagged_and_out_of_range_artifacts_are_discarded(self):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(handler=_scoring())
        artifacts = [
            AudioArtifact.from_upload("answer.webm", b"stray"),
            AudioArtifact.from_upload("q9.webm", b"late"),
            AudioArtifact.from_upload("Q4-final.webm", b"a4"),
        ]

        batch = await _pipeline(service, generator).evaluate(_slots(), artifacts)

        assert service.uploads == [b"a4"]
        assert batch.transcripts[3] == "transcript of a4"
        assert batch.scores == [0, 0, 0, 8, 0, 0]

    @pytest.mark.asyncio
    async def test_short_transcript_is_not_scored(self):
        service = FakeTranscriptionService({b"a1": [FakeTranscriptionService.completed(" ok ")]})
        generator = ScriptedTextGenerator(handler=_scoring())

        batch = await _pipeline(service, generator).evaluate(
            _slots(), [AudioArtifact.from_upload("q1.webm", b"a1")]
        )

        assert batch.transcripts[0] == " ok "
        assert batch.scores[0] == 0
        assert batch.feedback[0] == NO_ANSWER_FEEDBACK
        assert generator.prompts_containing(SCORING_MARKER) == []

    @pytest.mark.asyncio
    async def test_fenced_scoring_output_is_parsed(self):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(
            handler=lambda prompt: '```json\n{"score": 8, "feedback": "good"}\n```'
        )

        batch = await _pipeline(service, generator).evaluate(_slots(), _artifacts())

        assert batch.scores[0] == 8
        assert batch.feedback[0] == "good"

    @pytest.mark.asyncio
    async def test_non_json_scoring_output_defaults_to_zero(self):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(handler=lambda prompt: "not json")

        batch = await _pipeline(service, generator).evaluate(_slots(), _artifacts())

        assert batch.scores == [0] * 6
        assert batch.feedback == [""] * 6

    @pytest.mark.asyncio
    async def test_scoring_failure_is_isolated(self):
        service = FakeTranscriptionService()

        def handle(prompt: str):
            if "Question 5?" in prompt:
                return GenerationFailed("rate limited")
            return json.dumps({"score": 6, "feedback": "fine"})

        batch = await _pipeline(service, ScriptedTextGenerator(handler=handle)).evaluate(
            _slots(), _artifacts()
        )

        assert batch.scores == [6, 6, 6, 6, 0, 6]
        assert batch.feedback[4] == EVALUATION_FAILED_FEEDBACK

    @pytest.mark.asyncio
    async def test_upload_failure_degrades_every_slot_without_raising(self):
        service = FakeTranscriptionService()
        service.upload_error = ConnectionError("network down")
        generator = ScriptedTextGenerator(handler=_scoring())

        batch = await _pipeline(service, generator).evaluate(_slots(), _artifacts())

        assert batch.transcripts == [""] * 6
        assert batch.scores == [0] * 6
        assert generator.prompts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw, expected", [
        ('{"score": 14, "feedback": "x"}', 10),
        ('{"score": -3, "feedback": "x"}', 0),
        ('{"score": "7", "feedback": "x"}', 7),
        ('{"score": 6.6, "feedback": "x"}', 7),
        ('{"score": "seven", "feedback": "x"}', 0),
        ('{"score": true, "feedback": "x"}', 0),
    ])
    async def test_score_coercion(self, raw, expected):
        service = FakeTranscriptionService()
        generator = ScriptedTextGenerator(handler=lambda prompt: raw)

        batch = await _pipeline(service, generator).evaluate(
            _slots(), [AudioArtifact.from_upload("q1.webm", b"a1")]
        )

        assert batch.scores[0] == expected
