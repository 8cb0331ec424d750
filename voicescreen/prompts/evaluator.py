"""
AI Evaluator Prompt Templates

Contains the scoring prompt for a single transcribed answer.

Evaluation criteria:
- Accuracy
- Completeness
- Approach
- Clarity
- Fit for the time limit and difficulty
"""

from voicescreen.models.interview import Difficulty


class EvaluatorPrompts:
    """
    Prompt templates for scoring answers.

    The response contract is a single JSON object
    ``{"score": number, "feedback": string}`` with the score on 0-10.
    """

    SCORING_RUBRIC = """Score the answer from 0 to 10 based on the following criteria:
1. Accuracy - Is the answer factually correct?
2. Completeness - Does it address all required parts of the question?
3. Approach - Is the reasoning or method appropriate for the problem?
4. Clarity - Is the answer easy to understand and well-structured?
5. Fit for Constraints - Is it appropriate for the given time limit ({time_limit} seconds) and difficulty level ({difficulty})?"""

    def generate_scoring_prompt(
        self,
        question: str,
        transcript: str,
        time_limit_seconds: int,
        difficulty: Difficulty,
    ) -> str:
        """Prompt for scoring one answer."""
        rubric = self.SCORING_RUBRIC.format(
            time_limit=time_limit_seconds,
            difficulty=difficulty.value,
        )

        return f"""You are an evaluator. {rubric}

Provide your response strictly in the following JSON format:
{{"score": number, "feedback": "string"}}

Here is the question and answer to evaluate:

Q: {question}
A: {transcript}"""
