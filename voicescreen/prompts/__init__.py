"""
AI prompt templates for VoiceScreen

Contains structured prompts for:
- Resume identity extraction
- Question generation
- Answer scoring
- Summary generation
"""

from voicescreen.prompts.interviewer import InterviewerPrompts
from voicescreen.prompts.evaluator import EvaluatorPrompts
from voicescreen.prompts.report import ReportPrompts

__all__ = [
    "InterviewerPrompts",
    "EvaluatorPrompts",
    "ReportPrompts",
]
