"""
Tolerant extraction of JSON objects from free-form model output.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers around a model response."""
    return _FENCE.sub("", text).strip()


def parse_model_json(text: str | None, default: Any) -> Any:
    """
    Parse a JSON value out of model output, falling back to ``default``.

    Code fences are stripped first. When the remaining text is not valid
    JSON as a whole, the outermost ``{...}`` span is tried before giving up.
    Never raises.

    Args:
        text: Raw model response
        default: Value returned when nothing parseable is found

    Returns:
        The parsed value or ``default``
    """
    if not text:
        return default

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    json_start = cleaned.find("{")
    json_end = cleaned.rfind("}") + 1
    if json_start >= 0 and json_end > json_start:
        try:
            return json.loads(cleaned[json_start:json_end])
        except json.JSONDecodeError as e:
            logger.debug(f"Embedded JSON object did not parse: {e}")

    logger.warning(f"Model output is not JSON, using default: {cleaned[:80]!r}")
    return default
