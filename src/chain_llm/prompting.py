"""Prompt template variable handling."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from chain_llm.models.service_params import PromptVariables

logger = logging.getLogger(__name__)

VARIABLE_RE = re.compile(r"\$([a-zA-Z_][a-zA-Z0-9_]*)")


def flatten_variables(prompt_variables: PromptVariables | None) -> dict[str, str]:
    flattened: dict[str, str] = {}
    for variables in prompt_variables or []:
        flattened.update(variables)
    return flattened


def find_variables(prompt_text: str) -> list[str]:
    return list(dict.fromkeys(VARIABLE_RE.findall(prompt_text)))


def substitute_variables(prompt_text: str, prompt_variables: PromptVariables | None) -> str:
    """
    Replace $name tokens with values from the variables array.
    Unknown names are left in place and logged.
    """
    if not prompt_variables:
        return prompt_text

    values = flatten_variables(prompt_variables)
    missing = [name for name in find_variables(prompt_text) if name not in values]
    for name in missing:
        logger.warning("Variable not found in prompt_variables: $%s (available: %s)", name, sorted(values))

    result = VARIABLE_RE.sub(lambda match: values.get(match.group(1), match.group(0)), prompt_text)
    if result != prompt_text:
        logger.debug("Variable substitution: %r -> %r", prompt_text, result)
    return result


def parse_prompt_variables(json_text: str | None) -> list[Any]:
    if not json_text or not json_text.strip():
        return []
    try:
        parsed = json.loads(json_text)
    except ValueError as exc:
        logger.error("Failed to parse prompt_variables JSON: %s", exc)
        return []
    if not isinstance(parsed, list):
        logger.warning("prompt_variables is not an array, wrapping in array")
        return [parsed]
    return parsed


def validate_variables(prompt_text: str, prompt_variables: PromptVariables | None) -> tuple[bool, list[str]]:
    values = flatten_variables(prompt_variables)
    missing = [name for name in find_variables(prompt_text) if name not in values]
    return (not missing, missing)
