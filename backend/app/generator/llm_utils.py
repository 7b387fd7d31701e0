"""Helpers for pulling JSON out of model completions."""

import json
import re
from typing import Any

from app.core.logging import get_logger

logger = get_logger(__name__)

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_FENCE = re.compile(r"```[A-Za-z]*\s*\n?(.*?)\n?\s*```", re.DOTALL)


def fix_trailing_commas(text: str) -> str:
    """Drop a comma that directly precedes ``}`` or ``]``."""
    return _TRAILING_COMMA.sub(r"\1", text)


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or ``text`` stripped."""
    text = text.strip()
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text


def find_json_block(text: str) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` span in ``text``.

    Brackets inside string literals are ignored.
    """
    start = next((i for i, ch in enumerate(text) if ch in "{["), -1)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch in "{[":
                depth += 1
            elif ch in "}]":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
    return None


def _loads(text: str) -> Any | None:
    try:
        return json.loads(fix_trailing_commas(text.strip()))
    except (json.JSONDecodeError, ValueError):
        return None


def parse_llm_json_response(content: str | None) -> Any:
    """Parse JSON from a completion, tolerating fences and surrounding prose.

    Tries, in order: the raw text, the first fenced block, the first
    balanced JSON span. Trailing commas are removed in every attempt.

    Raises:
        ValueError: Empty content or no parseable JSON.
    """
    if not content or not content.strip():
        raise ValueError("Empty LLM response")

    candidates = (
        ("direct", content),
        ("code block", strip_code_fence(content)),
        ("substring", find_json_block(content)),
    )
    for strategy, candidate in candidates:
        if not candidate:
            continue
        result = _loads(candidate)
        if result is not None:
            logger.debug("Parsed LLM JSON", strategy=strategy)
            return result

    logger.error("Failed to parse LLM JSON response", content_preview=content[:200])
    raise ValueError("Failed to parse LLM JSON response: no valid JSON found")
