"""
AI Reasoning Layer for VoiceScreen

Handles all text-generation operations:
- Candidate identity extraction from resume text
- Question generation for the six slots
- Answer scoring
- Session summary

The layer talks to the text-generation collaborator only through
``TextGenerator.generate``; the HTTP implementation lives in
``TextGenerationClient``.
"""

import logging
from typing import Protocol

import httpx

from voicescreen.config.settings import Settings
from voicescreen.core.errors import GenerationFailed, ScoringFailed, ScoringMalformed
from voicescreen.core.model_json import parse_model_json
from voicescreen.models.evaluation import ScoreResult
from voicescreen.models.interview import (
    DIFFICULTY_BY_SLOT,
    TOTAL_SLOTS,
    CandidateInfo,
    Difficulty,
    QuestionSlot,
)
from voicescreen.prompts.evaluator import EvaluatorPrompts
from voicescreen.prompts.interviewer import InterviewerPrompts
from voicescreen.prompts.report import ReportPrompts

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Text-generation collaborator contract."""

    async def generate(self, prompt: str) -> str:
        """Return generated text; raise GenerationFailed on any failure."""
        ...


class TextGenerationClient:
    """
    Text generation over a chat-completions style serving endpoint.

    Constructed once per process and shared by every session.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.client = httpx.AsyncClient(
            base_url=settings.llm_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {settings.llm_api_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.llm_timeout_seconds,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    async def generate(self, prompt: str) -> str:
        payload = {
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": self.settings.llm_max_tokens,
            "temperature": self.settings.llm_temperature,
        }

        try:
            response = await self.client.post(self.settings.llm_endpoint, json=payload)
            response.raise_for_status()
            return self._extract_content(response.json())
        except httpx.HTTPError as e:
            logger.error(f"Text generation API error: {e}")
            raise GenerationFailed(str(e)) from e
        except (ValueError, IndexError, AttributeError) as e:
            logger.error(f"Text generation returned an unexpected payload: {e}")
            raise GenerationFailed(f"Malformed generation response: {e}") from e


class AIReasoningLayer:
    """
    Prompt building and response parsing on top of a TextGenerator.
    """

    def __init__(self, generator: TextGenerator, settings: Settings):
        self.generator = generator
        self.settings = settings

        # Prompt templates
        self.interviewer_prompts = InterviewerPrompts(topic=settings.interview_topic)
        self.evaluator_prompts = EvaluatorPrompts()
        self.report_prompts = ReportPrompts()

    # =========================================================================
    # RESUME
    # =========================================================================

    async def extract_candidate_info(self, resume_text: str) -> CandidateInfo:
        """
        Pull name, email and phone out of resume text.

        Never raises: blank text, generation failures and unparseable
        output all yield an identity with every field unknown.
        """
        if not resume_text or not resume_text.strip():
            return CandidateInfo()

        truncated = resume_text[:self.settings.resume_max_chars]
        prompt = self.interviewer_prompts.extract_candidate_prompt(truncated)

        try:
            response = await self.generator.generate(prompt)
        except GenerationFailed as e:
            logger.warning(f"Candidate extraction failed, leaving fields unknown: {e}")
            return CandidateInfo()

        data = parse_model_json(response.strip(), {})
        if not isinstance(data, dict):
            return CandidateInfo()

        return CandidateInfo(
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
        )

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def generate_questions(self, candidate: CandidateInfo) -> list[QuestionSlot]:
        """
        Generate the six interview questions, easiest first.

        Raises:
            GenerationFailed: If any single question cannot be generated
        """
        slots = []
        for slot_number in range(1, TOTAL_SLOTS + 1):
            difficulty = DIFFICULTY_BY_SLOT[slot_number]
            prompt = self.interviewer_prompts.generate_question_prompt(
                slot_number=slot_number,
                difficulty=difficulty,
                candidate=candidate,
            )

            try:
                question = (await self.generator.generate(prompt)).strip()
            except GenerationFailed:
                logger.error(f"Error generating question Q{slot_number} ({difficulty.value})")
                raise

            if not question:
                logger.error(f"Empty question generated for Q{slot_number} ({difficulty.value})")
                raise GenerationFailed(f"Empty question for slot {slot_number}")

            slots.append(QuestionSlot.for_slot(slot_number, question))

        logger.info(f"Generated {len(slots)} questions")
        return slots

    # =========================================================================
    # SCORING
    # =========================================================================

    async def score_answer(
        self,
        question: str,
        transcript: str,
        time_limit_seconds: int,
        difficulty: Difficulty,
    ) -> ScoreResult:
        """
        Score one transcribed answer.

        Malformed output degrades to a zero score with empty feedback.

        Raises:
            ScoringFailed: If the scoring call itself fails
        """
        prompt = self.evaluator_prompts.generate_scoring_prompt(
            question=question,
            transcript=transcript,
            time_limit_seconds=time_limit_seconds,
            difficulty=difficulty,
        )
        try:
            response = await self.generator.generate(prompt)
        except GenerationFailed as e:
            raise ScoringFailed(str(e)) from e
        return self.parse_score(response)

    def parse_score(self, response: str) -> ScoreResult:
        """Parse a scoring response, substituting the default when malformed."""
        data = parse_model_json(response.strip() if response else "", None)
        try:
            return self._to_score_result(data)
        except ScoringMalformed as e:
            logger.warning(f"Malformed scoring output: {e}")
            return ScoreResult()

    @staticmethod
    def _to_score_result(data) -> ScoreResult:
        if not isinstance(data, dict):
            raise ScoringMalformed(f"expected an object, got {type(data).__name__}")

        raw_score = data.get("score")
        if isinstance(raw_score, bool):
            raise ScoringMalformed("score is a boolean")
        try:
            score = int(round(float(raw_score)))
        except (TypeError, ValueError, OverflowError) as e:
            raise ScoringMalformed(f"score {raw_score!r} is not a number") from e

        feedback = data.get("feedback")
        return ScoreResult(
            score=max(0, min(10, score)),
            feedback=feedback if isinstance(feedback, str) else "",
        )

    # =========================================================================
    # SUMMARY
    # =========================================================================

    async def summarize(
        self,
        candidate: CandidateInfo,
        average_score: float,
        questions: list[str],
        answers: list[str],
        scores: list[int],
    ) -> str:
        """
        Generate a short interview summary.

        Raises:
            GenerationFailed: If generation fails
        """
        prompt = self.report_prompts.generate_summary_prompt(
            candidate_name=candidate.name,
            average_score=average_score,
            questions=questions,
            answers=answers,
            scores=scores,
        )
        return (await self.generator.generate(prompt)).strip()
