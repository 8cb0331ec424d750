"""
AI Summary Prompt

Contains the prompt for the short end-of-interview summary.
"""


class ReportPrompts:
    """Prompt templates for the final session summary."""

    def generate_summary_prompt(
        self,
        candidate_name: str | None,
        average_score: float,
        questions: list[str],
        answers: list[str],
        scores: list[int],
    ) -> str:
        """Prompt for a concise summary over all question/answer/score triples."""
        qa_blocks = []
        for i, question in enumerate(questions):
            answer = answers[i] if i < len(answers) else ""
            score = scores[i] if i < len(scores) else 0
            qa_blocks.append(f"Q{i + 1}: {question}\nA{i + 1}: {answer}\nScore: {score}/10")

        qa_text = "\n\n".join(qa_blocks)

        return (
            f"Write a concise 2-3 sentence interview summary for "
            f"{candidate_name or 'the candidate'} (Avg: {average_score:.1f}/10).\n\n"
            f"{qa_text}"
        )
