"""JSON parsing helpers for free-form model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, TypeAlias

logger = logging.getLogger(__name__)

JsonValue: TypeAlias = None | bool | int | float | str | list[Any] | dict[str, Any]
JsonObject: TypeAlias = dict[str, Any]

FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")


def _load_object(candidate: str) -> JsonObject | None:
    try:
        parsed = json.loads(candidate)
    except ValueError:
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def parse_whole_text(text: str) -> JsonObject | None:
    return _load_object(text)


def parse_fenced_block(text: str) -> JsonObject | None:
    match = FENCED_BLOCK_RE.search(text)
    if match is None:
        return None
    return _load_object(match.group(1).strip())


def parse_brace_span(text: str) -> JsonObject | None:
    """
    Parse the span from the first "{" to the last "}".
    This is a fallback for models that wrap JSON in extra prose.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _load_object(text[start : end + 1])


ExtractionStrategy: TypeAlias = Callable[[str], JsonObject | None]

EXTRACTION_STRATEGIES: list[tuple[str, ExtractionStrategy]] = [
    ("direct", parse_whole_text),
    ("fenced code block", parse_fenced_block),
    ("brace matching", parse_brace_span),
]


def parse_llm_json_response(text: str) -> JsonObject | None:
    """
    Best-effort extraction of a JSON object from model text.
    Strategies run in order and the first one that yields an object wins.
    """
    for name, strategy in EXTRACTION_STRATEGIES:
        parsed = strategy(text)
        if parsed is not None:
            logger.debug("Extracted JSON from model output via %s", name)
            return parsed

    logger.warning("Could not parse LLM response as JSON: %r", text[:100])
    return None
