"""
AI Interviewer Prompt Templates

Contains structured prompts for:
- Candidate identity extraction from resume text
- Question generation, one prompt per slot
"""

import json

from voicescreen.models.interview import CandidateInfo, Difficulty, TOTAL_SLOTS


class InterviewerPrompts:
    """
    Prompt templates for the AI interviewer.

    Questions are spoken aloud and answered aloud, so every prompt asks
    for plain sentences with no lists, code or preamble.
    """

    SYSTEM_CONTEXT = """You are acting as a senior technical interviewer.

Your role:
- Ask realistic, scenario-based questions
- Make the candidate talk through data flow, logic, performance and edge cases
- Never reveal answers
- Speak concisely like a real interviewer
"""

    # Word and sentence limits per tier keep spoken questions short
    LENGTH_LIMITS: dict[Difficulty, str] = {
        Difficulty.EASY: "at most 20 words, 1 sentence",
        Difficulty.MEDIUM: "at most 35 words, 2 sentences",
        Difficulty.HARD: "at most 60 words, 2 sentences",
    }

    def __init__(self, topic: str):
        self.topic = topic

    def extract_candidate_prompt(self, resume_text: str) -> str:
        """Prompt asking for the candidate's identity as JSON."""
        return f"""Extract the candidate's name, email and phone number from the resume below.

Respond ONLY with a JSON object of the form:
{{"name": "string or null", "email": "string or null", "phone": "string or null"}}

Resume:
{resume_text}"""

    def generate_question_prompt(
        self,
        slot_number: int,
        difficulty: Difficulty,
        candidate: CandidateInfo,
    ) -> str:
        """Prompt for the question of one slot."""
        candidate_json = json.dumps(candidate.model_dump(exclude_none=True))

        return f"""{self.SYSTEM_CONTEXT}
Generate one high-quality {self.topic} interview question.

Difficulty: {difficulty.value}
Question number: Q{slot_number} of {TOTAL_SLOTS}
Candidate: {candidate_json}

Requirements:
- Frame the question as a realistic scenario the candidate must explain verbally.
- Avoid abstract system design prompts; it must be answerable step by step in speech.
- No list format, no preamble, no code snippets.
- Length: {self.LENGTH_LIMITS[difficulty]}.

Output ONLY the question."""
