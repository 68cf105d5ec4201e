"""Restricted JSONPath (`$.a.b[0].c`) reads used by next_prompt routing."""

from __future__ import annotations

import logging
import re
from typing import Any, Union

from chain_llm.chain_paths import stringify_leaf

logger = logging.getLogger(__name__)

JSONPATH_RE = re.compile(r"^\$\.[a-zA-Z_][a-zA-Z0-9_]*(\[\d+\])?(\.[a-zA-Z_][a-zA-Z0-9_]*(\[\d+\])?)*$")
SEGMENT_RE = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*)|\[(\d+)\]")

Segment = Union[str, int]

MISSING = object()


def is_valid_jsonpath(path: str) -> bool:
    return bool(path) and JSONPATH_RE.match(path) is not None


def parse_jsonpath(path: str) -> list[Segment]:
    segments: list[Segment] = []
    for name, index in SEGMENT_RE.findall(path[2:]):
        segments.append(int(index) if index else name)
    return segments


def extract_jsonpath_raw(obj: Any, path: str) -> Any:
    """Return the value at `path`, or MISSING when the path is invalid or cannot be followed."""
    if not is_valid_jsonpath(path):
        logger.warning("Invalid JSONPath expression %r (must start with $. and name fields)", path)
        return MISSING

    current = obj
    for segment in parse_jsonpath(path):
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                logger.debug("JSONPath %s: no element [%d]", path, segment)
                return MISSING
            current = current[segment]
        elif isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            logger.debug("JSONPath %s: no field %r", path, segment)
            return MISSING
    return current


def extract_jsonpath_value(obj: Any, path: str) -> str | None:
    value = extract_jsonpath_raw(obj, path)
    if value is MISSING:
        return None
    return stringify_leaf(value)
