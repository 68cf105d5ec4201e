"""Resolution of chain field, variable and image definitions against earlier call results."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from chain_llm.chain_paths import extract_value_from_path
from chain_llm.chain_paths import parse_call_chain_path
from chain_llm.errors import ChainReferenceError
from chain_llm.models.chain_field import CallChainField
from chain_llm.models.chain_field import ChainFieldDefinition
from chain_llm.models.chain_field import ChainImageDefinition
from chain_llm.models.chain_field import ChainVariableDefinition
from chain_llm.models.chain_field import DirectField
from chain_llm.models.chain_result import ChainCallResult
from chain_llm.models.service_params import PromptVariables

logger = logging.getLogger(__name__)

TOP_LEVEL_FIELDS = ("image_b64", "image_mime_type", "raw_text")


@dataclass(frozen=True)
class ResolvedImage:
    image_b64: str
    image_mime_type: str


def extract_value_from_result(result: ChainCallResult, property_path: Sequence[str]) -> str | None:
    """
    Read a value from a call result. Single-segment image_b64, image_mime_type
    and raw_text paths read the top-level fields; everything else is looked up
    in parsed_result.
    """
    if not property_path:
        logger.warning("Empty property path provided")
        return None

    first_key = property_path[0]
    if len(property_path) == 1 and first_key in TOP_LEVEL_FIELDS:
        value = getattr(result, first_key)
        if value:
            return value
        logger.warning("Top-level field %s not set on call %d", first_key, result.call_index)
        return None

    if result.parsed_result is None:
        logger.warning("No parsed_result on call %d for path %s", result.call_index, list(property_path))
        return None
    return extract_value_from_path(result.parsed_result, property_path)


def _resolve_call_chain(field: CallChainField, previous_results: Sequence[ChainCallResult]) -> str | None:
    parsed = parse_call_chain_path(field.value)
    if parsed is None:
        return None

    if parsed.call_index >= len(previous_results):
        logger.error(
            "call_chain path %r references future or non-existent call %d (%d available)",
            field.value,
            parsed.call_index,
            len(previous_results),
        )
        raise ChainReferenceError(field.value, parsed.call_index, len(previous_results))

    referenced = previous_results[parsed.call_index]
    if not referenced.success:
        logger.warning("call_chain path %r references failed call %d", field.value, parsed.call_index)
        return None

    value = extract_value_from_result(referenced, parsed.property_path)
    if value is None:
        logger.warning("Could not extract value for call_chain path %r", field.value)
    return value


def resolve_chain_field(
    field: ChainFieldDefinition,
    previous_results: Sequence[ChainCallResult],
) -> str | None:
    """
    Resolve a field to its string value, or None when it cannot be resolved.
    Raises ChainReferenceError when the path points at a call that has not run.
    """
    if isinstance(field, DirectField):
        return field.value
    return _resolve_call_chain(field, previous_results)


def build_prompt_variables(
    variables: Sequence[ChainVariableDefinition] | None,
    previous_results: Sequence[ChainCallResult],
) -> PromptVariables:
    if not variables:
        return []

    resolved: dict[str, str] = {}
    for index, variable in enumerate(variables):
        if not variable.variable_name:
            logger.warning("Variable definition %d is missing variable_name", index)
            continue
        value = resolve_chain_field(variable, previous_results)
        if value is None:
            logger.warning(
                "Could not resolve variable %s (%s %r)", variable.variable_name, variable.match_type, variable.value
            )
            continue
        resolved[variable.variable_name] = value
        logger.debug("Built variable %s = %r", variable.variable_name, value[:50])

    return [resolved] if resolved else []


def resolve_chain_image(
    image_def: ChainImageDefinition,
    previous_results: Sequence[ChainCallResult],
) -> ResolvedImage | None:
    image_b64 = resolve_chain_field(image_def.image_b64, previous_results)
    image_mime_type = resolve_chain_field(image_def.image_mime_type, previous_results)

    if not image_b64:
        logger.error("Could not resolve image_b64 from %r", image_def.image_b64.value)
        return None
    if not image_mime_type:
        logger.error("Could not resolve image_mime_type from %r", image_def.image_mime_type.value)
        return None
    return ResolvedImage(image_b64=image_b64, image_mime_type=image_mime_type)
