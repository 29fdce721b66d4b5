"""
JSON extraction from free-text oracle responses.

Chat models often wrap the requested JSON in prose or a markdown fence.
extract_json() tries, in order:
1. The first fenced code block (``` or ```json), parsed on its own
2. The greedy span from the first "{" to the last "}"

Parsing is strict (json.loads, no NaN/Infinity). Comments, trailing commas
and unquoted keys are not repaired; they raise ExtractionFailed.
"""

import json
import re
from typing import Any

from healthscribe.errors import ExtractionFailed
from healthscribe.logging_config import debug_log

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)
BRACE_SPAN_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _parse_object(candidate: str) -> dict | None:
    """Parse candidate as a strict JSON object, or return None."""
    try:
        value = json.loads(candidate.strip(), parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        # RecursionError: pathologically nested arrays/objects
        return None
    return value if isinstance(value, dict) else None


def extract_json(response_text: str) -> dict[str, Any]:
    """
    Extract the JSON object embedded in an oracle response.

    Args:
        response_text: Raw oracle output, possibly with surrounding prose

    Returns:
        The parsed JSON object

    Raises:
        ExtractionFailed: If neither a fenced block nor a brace span parses
            as a JSON object. The raw text is attached for diagnostics.
    """
    text = response_text or ""

    fenced = FENCED_BLOCK_PATTERN.search(text)
    if fenced:
        parsed = _parse_object(fenced.group(1))
        if parsed is not None:
            return parsed
        debug_log("[JsonExtractor] Fenced block found but not valid JSON; trying brace span")

    span = BRACE_SPAN_PATTERN.search(text)
    if span:
        parsed = _parse_object(span.group(0))
        if parsed is not None:
            return parsed

    debug_log(f"[JsonExtractor] No parseable JSON object in response: {text[:100]!r}")
    raise ExtractionFailed("Oracle response contained no parseable JSON object", raw_text=text)
