"""Deep merge of JSON-like trees and chain results."""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Mapping

from chain_llm.models.chain_result import ChainCallResult

logger = logging.getLogger(__name__)


def deep_merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge `source` into a copy of `target`. Nested dicts are merged recursively;
    any other value in `source` (lists included) replaces the target value.
    """
    result: dict[str, Any] = copy.deepcopy(dict(target))
    for key, source_value in source.items():
        target_value = result.get(key)
        if isinstance(source_value, Mapping) and isinstance(target_value, Mapping):
            result[key] = deep_merge(target_value, source_value)
        else:
            result[key] = copy.deepcopy(source_value)
    return result


def merge_chain_results(results: Iterable[ChainCallResult]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for result in results:
        if result.success and result.parsed_result:
            merged = deep_merge(merged, result.parsed_result)
            logger.debug("Merged result from call %d", result.call_index)
    return merged
