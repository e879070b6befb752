"""
JSON utilities for handling LLM responses.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
_CODE_BLOCK = re.compile(r'```(?:json)?\s*(\{[\s\S]*?\})\s*```')
_OBJECT = re.compile(r'\{[\s\S]*\}')


def strip_control_chars(text: str) -> str:
    """Remove control characters that break json.loads (keeps tab/newline)."""
    return _CONTROL_CHARS.sub('', text or '')


def extract_json_object(response: str) -> Optional[str]:
    """
    Extract the JSON object embedded in an LLM response.

    Prefers a fenced ```json block, otherwise takes the span from the first
    '{' to the last '}'.

    Args:
        response: Raw LLM response text

    Returns:
        The candidate JSON text, or None if the response holds no braces
    """
    response = strip_control_chars(response)

    block = _CODE_BLOCK.search(response)
    if block:
        return block.group(1)

    match = _OBJECT.search(response)
    if match:
        return match.group(0)
    return None


def parse_json_object(response: str) -> Optional[Dict[str, Any]]:
    """
    Parse the JSON object embedded in an LLM response.

    Returns None when the response contains no object at all.  A brace span
    that is not valid JSON raises ``json.JSONDecodeError`` so callers can
    tell "no JSON" apart from "broken JSON".
    """
    candidate = extract_json_object(response)
    if candidate is None:
        return None

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug(f"Strict JSON decode failed, retrying lenient (first 200 chars): {candidate[:200]}")
        data = json.JSONDecoder(strict=False).decode(candidate)

    if not isinstance(data, dict):
        raise json.JSONDecodeError("Expected a JSON object", candidate, 0)
    return data
