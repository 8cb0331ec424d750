"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

from voicescreen.config.settings import get_settings
from voicescreen.core.ai_reasoning import AIReasoningLayer, TextGenerationClient
from voicescreen.core.evaluation_pipeline import BatchEvaluationPipeline
from voicescreen.core.result_aggregator import ResultAggregator
from voicescreen.core.session_registry import SessionRegistry
from voicescreen.core.transcription import AssemblyAIClient, TranscriptionPoller


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_text_client: TextGenerationClient | None = None
_transcription_client: AssemblyAIClient | None = None
_reasoning: AIReasoningLayer | None = None
_pipeline: BatchEvaluationPipeline | None = None
_aggregator: ResultAggregator | None = None
_registry: SessionRegistry | None = None


def get_reasoning() -> AIReasoningLayer:
    """Get the AI reasoning layer singleton."""
    global _text_client, _reasoning

    if _reasoning is None:
        settings = get_settings()
        _text_client = TextGenerationClient(settings)
        _reasoning = AIReasoningLayer(_text_client, settings)

    return _reasoning


def get_pipeline() -> BatchEvaluationPipeline:
    """Get the batch evaluation pipeline singleton."""
    global _transcription_client, _pipeline

    if _pipeline is None:
        settings = get_settings()
        _transcription_client = AssemblyAIClient(settings)
        poller = TranscriptionPoller.from_settings(_transcription_client, settings)
        _pipeline = BatchEvaluationPipeline(poller, get_reasoning())

    return _pipeline


def get_aggregator() -> ResultAggregator:
    """Get the result aggregator singleton."""
    global _aggregator

    if _aggregator is None:
        _aggregator = ResultAggregator(get_reasoning())

    return _aggregator


def get_registry() -> SessionRegistry:
    """
    Get the session registry singleton.

    Lazily initializes all required components.
    """
    global _registry

    if _registry is None:
        _registry = SessionRegistry(
            reasoning=get_reasoning(),
            pipeline=get_pipeline(),
            aggregator=get_aggregator(),
            settings=get_settings(),
        )

    return _registry


async def cleanup():
    """Cleanup resources on shutdown."""
    global _text_client, _transcription_client, _reasoning, _pipeline, _aggregator, _registry

    if _registry:
        await _registry.close()
        _registry = None

    if _transcription_client:
        await _transcription_client.close()
        _transcription_client = None

    if _text_client:
        await _text_client.close()
        _text_client = None

    _reasoning = None
    _pipeline = None
    _aggregator = None
