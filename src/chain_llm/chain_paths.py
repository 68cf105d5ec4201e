"""Parsing of call_chain path expressions and value extraction from result trees."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Segments are literal property names; dots inside a name cannot be escaped.
CALL_CHAIN_PATH_RE = re.compile(r"^call\[(\d+)\]\.(.+)$")


@dataclass(frozen=True)
class ChainPath:
    call_index: int
    property_path: tuple[str, ...]


def parse_call_chain_path(path_expr: str) -> ChainPath | None:
    match = CALL_CHAIN_PATH_RE.match(path_expr)
    if match is None:
        logger.error("Invalid call_chain path %r (expected call[N].property.path)", path_expr)
        return None
    call_index = int(match.group(1))
    property_path = tuple(match.group(2).split("."))
    logger.debug("Parsed call_chain path %r -> call %d, %s", path_expr, call_index, property_path)
    return ChainPath(call_index=call_index, property_path=property_path)


def stringify_leaf(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def extract_value_from_path(root: Any, path: tuple[str, ...] | list[str]) -> str | None:
    """
    Walk `path` through nested dicts and lists and return the terminal value as text.
    A segment indexes a list when it is a decimal string within bounds.
    Returns None when any segment cannot be followed.
    """
    current = root
    for key in path:
        if current is None:
            logger.warning("Path traversal hit null at %r in %s", key, list(path))
            return None
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list):
            if not (key.isascii() and key.isdigit()) or int(key) >= len(current):
                logger.debug("No list element %r in %s", key, list(path))
                return None
            current = current[int(key)]
        else:
            logger.warning(
                "Path traversal hit non-object %s at %r in %s", type(current).__name__, key, list(path)
            )
            return None
    return stringify_leaf(current)
