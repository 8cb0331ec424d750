"""
Tests for the AI reasoning layer and the text-generation client.
"""

import json

import httpx
import pytest

from tests.fakes import QUESTION_MARKER, RESUME_MARKER, ScriptedTextGenerator, interview_handler, make_settings
from voicescreen.core.ai_reasoning import AIReasoningLayer, TextGenerationClient
from voicescreen.core.errors import GenerationFailed, ScoringFailed
from voicescreen.models.interview import CandidateInfo, Difficulty


class TestTextGenerationClient:
    @pytest.mark.asyncio
    async def test_posts_chat_payload_and_extracts_text(self):
        seen: list[httpx.Request] = []

        def handle(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "choices": [{"message": {"content": [{"type": "text", "text": "Hello"}, " world"]}}],
            })

        client = TextGenerationClient(make_settings(), transport=httpx.MockTransport(handle))
        text = await client.generate("Say hi")
        await client.close()

        assert text == "Hello world"
        body = json.loads(seen[0].content)
        assert body["messages"] == [{"role": "user", "content": "Say hi"}]
        assert body["max_tokens"] == 1024
        assert seen[0].headers["Authorization"] == "Bearer test-key"
        assert seen[0].url.path == "/serving-endpoints/gemini-flash/invocations"

    @pytest.mark.asyncio
    async def test_http_error_is_generation_failure(self):
        client = TextGenerationClient(
            make_settings(),
            transport=httpx.MockTransport(lambda request: httpx.Response(429)),
        )

        with pytest.raises(GenerationFailed):
            await client.generate("Say hi")
        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_payload_is_generation_failure(self):
        client = TextGenerationClient(
            make_settings(),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})),
        )

        with pytest.raises(GenerationFailed):
            await client.generate("Say hi")
        await client.close()


class TestCandidateExtraction:
    @pytest.mark.asyncio
    async def test_extracts_fields(self):
        generator = ScriptedTextGenerator(['{"name": "Ada", "email": "ada@example.com", "phone": ""}'])
        layer = AIReasoningLayer(generator, make_settings())

        candidate = await layer.extract_candidate_info("Ada ...")

        assert candidate == CandidateInfo(name="Ada", email="ada@example.com")
        assert candidate.missing_fields == ["phone"]

    @pytest.mark.asyncio
    async def test_truncates_long_resumes(self):
        generator = ScriptedTextGenerator(["{}"])
        layer = AIReasoningLayer(generator, make_settings(resume_max_chars=100))

        await layer.extract_candidate_info("x" * 500 + "TAIL")

        prompt = generator.prompts_containing(RESUME_MARKER)[0]
        assert "x" * 100 in prompt
        assert "x" * 101 not in prompt
        assert "TAIL" not in prompt

    @pytest.mark.asyncio
    async def test_blank_text_makes_no_call(self):
        generator = ScriptedTextGenerator()
        layer = AIReasoningLayer(generator, make_settings())

        assert await layer.extract_candidate_info("   ") == CandidateInfo()
        assert generator.prompts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [GenerationFailed("down"), "no idea", "[1, 2]"])
    async def test_failures_yield_unknown_fields(self, response):
        layer = AIReasoningLayer(ScriptedTextGenerator([response]), make_settings())

        assert await layer.extract_candidate_info("Ada ...") == CandidateInfo()


class TestQuestionGeneration:
    @pytest.mark.asyncio
    async def test_six_questions_in_difficulty_order(self):
        generator = ScriptedTextGenerator(handler=interview_handler())
        layer = AIReasoningLayer(generator, make_settings())

        slots = await layer.generate_questions(CandidateInfo(name="Ada"))

        assert [slot.slot_number for slot in slots] == [1, 2, 3, 4, 5, 6]
        assert [slot.difficulty for slot in slots] == [
            Difficulty.EASY, Difficulty.EASY,
            Difficulty.MEDIUM, Difficulty.MEDIUM,
            Difficulty.HARD, Difficulty.HARD,
        ]
        assert [slot.time_limit_seconds for slot in slots] == [20, 20, 60, 60, 120, 120]
        prompts = generator.prompts_containing(QUESTION_MARKER)
        assert "Difficulty: Easy" in prompts[0]
        assert "Difficulty: Hard" in prompts[5]
        assert '"name": "Ada"' in prompts[0]

    @pytest.mark.asyncio
    async def test_empty_question_aborts(self):
        generator = ScriptedTextGenerator(["Q1?", "   "])
        layer = AIReasoningLayer(generator, make_settings())

        with pytest.raises(GenerationFailed):
            await layer.generate_questions(CandidateInfo())
        assert len(generator.prompts) == 2


class TestScoring:
    @pytest.mark.asyncio
    async def test_scoring_call_failure_raises_scoring_failed(self):
        layer = AIReasoningLayer(ScriptedTextGenerator([GenerationFailed("down")]), make_settings())

        with pytest.raises(ScoringFailed):
            await layer.score_answer("Q?", "an answer", 20, Difficulty.EASY)

    @pytest.mark.asyncio
    async def test_prompt_carries_time_limit_and_difficulty(self):
        generator = ScriptedTextGenerator(['{"score": 9, "feedback": "great"}'])
        layer = AIReasoningLayer(generator, make_settings())

        result = await layer.score_answer("Q?", "an answer", 120, Difficulty.HARD)

        assert (result.score, result.feedback) == (9, "great")
        assert "(120 seconds)" in generator.prompts[0]
        assert "difficulty level (Hard)" in generator.prompts[0]

    def test_non_string_feedback_becomes_empty(self):
        layer = AIReasoningLayer(ScriptedTextGenerator(), make_settings())

        result = layer.parse_score('{"score": 5, "feedback": {"nested": true}}')

        assert (result.score, result.feedback) == (5, "")
