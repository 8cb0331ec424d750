"""
Core business logic modules for VoiceScreen

Contains:
- Session State Machine: lifecycle of one interview
- Answer Capture Timer: per-question countdown and recording
- AI Reasoning: identity extraction, question generation, scoring, summary
- Transcription: AssemblyAI client and polling
- Evaluation Pipeline: batch transcription and scoring
- Result Aggregator: final scores and summary
"""

from voicescreen.core.interview_orchestrator import SessionStateMachine
from voicescreen.core.answer_timer import AnswerCaptureTimer
from voicescreen.core.ai_reasoning import AIReasoningLayer, TextGenerationClient
from voicescreen.core.transcription import AssemblyAIClient, TranscriptionPoller
from voicescreen.core.evaluation_pipeline import BatchEvaluationPipeline
from voicescreen.core.result_aggregator import ResultAggregator
from voicescreen.core.session_registry import SessionRegistry

__all__ = [
    "SessionStateMachine",
    "AnswerCaptureTimer",
    "AIReasoningLayer",
    "TextGenerationClient",
    "AssemblyAIClient",
    "TranscriptionPoller",
    "BatchEvaluationPipeline",
    "ResultAggregator",
    "SessionRegistry",
]
