"""
Dynamic data extraction: run a prompt, merge its JSON output, and let the
prompt's next_prompt config pick the following prompt from that output.
"""

from __future__ import annotations

import json
import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from pydantic import ValidationError

from chain_llm.chain_paths import stringify_leaf
from chain_llm.deep_merge import deep_merge
from chain_llm.errors import ChainLLMError
from chain_llm.json_path import MISSING
from chain_llm.json_path import extract_jsonpath_raw
from chain_llm.json_path import extract_jsonpath_value
from chain_llm.json_utils import parse_llm_json_response
from chain_llm.models.dynamic_extract import DynamicDataExtractParams
from chain_llm.models.dynamic_extract import DynamicDataExtractResponse
from chain_llm.models.dynamic_extract import DynamicExtractError
from chain_llm.models.dynamic_extract import DynamicExtractStepResult
from chain_llm.models.dynamic_extract import DynamicExtractStopReason
from chain_llm.models.dynamic_extract import NextPromptResolution
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.next_prompt import NextPromptBranch
from chain_llm.models.next_prompt import NextPromptCondition
from chain_llm.models.next_prompt import NextPromptConfig
from chain_llm.models.next_prompt import NextPromptOperator
from chain_llm.models.next_prompt import NextPromptTarget
from chain_llm.models.prompt_record import PromptRecord
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import PromptVariables
from chain_llm.models.service_params import TextTextParams
from chain_llm.prompts.lookup import FallbackPromptLookup
from chain_llm.service_calls import ServiceCaller

logger = logging.getLogger(__name__)

ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


class ExtractStepError(ChainLLMError):
    def __init__(self, message: str, reason: DynamicExtractStopReason) -> None:
        super().__init__(message)
        self.reason: DynamicExtractStopReason = reason


@dataclass(frozen=True)
class ResolvedNextPrompt:
    prompt_area: str
    prompt_key: str
    resolution_type: Literal["simple", "branch", "default"]
    branch_index: Optional[int] = None


def parse_next_prompt_config(text: str | None) -> NextPromptConfig | None:
    if not text or not text.strip():
        return None
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        logger.warning("Failed to parse next_prompt JSON: %s (%r)", exc, text[:100])
        return None
    if not isinstance(parsed, dict):
        logger.warning("next_prompt must be a JSON object, got %s", type(parsed).__name__)
        return None
    try:
        return NextPromptConfig.model_validate(parsed)
    except ValidationError as exc:
        logger.warning("Invalid next_prompt config: %s", exc)
        return None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except ValueError:
        return None


def _text(value: Any) -> str:
    return stringify_leaf(value) or ""


def _same_kind(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool)
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return True
    return type(left) is type(right)


def compare_values(left: Any, op: NextPromptOperator, right: Any) -> bool:
    """
    Compare an extracted value with a condition value. Mixed types compare as
    text; ordering operators compare as numbers when both sides parse as numbers.
    """
    if left is None or left is MISSING:
        # A missing field only equals nothing; it differs from any set value.
        return op == "!="
    if op in ("==", "!="):
        if _same_kind(left, right):
            equal = left == right
        else:
            equal = _text(left) == _text(right)
        return equal if op == "==" else not equal
    if op in ORDERING:
        left_num, right_num = _as_number(left), _as_number(right)
        if left_num is None or right_num is None:
            return ORDERING[op](_text(left), _text(right))
        return ORDERING[op](left_num, right_num)
    if op == "contains":
        return _text(right) in _text(left)
    if op == "startsWith":
        return _text(left).startswith(_text(right))
    if op == "endsWith":
        return _text(left).endswith(_text(right))
    return False


def evaluate_condition(condition: NextPromptCondition, output: dict[str, Any]) -> bool:
    actual = extract_jsonpath_raw(output, condition.field)
    result = compare_values(actual, condition.operator, condition.value)
    logger.debug(
        "Condition %s %s %r on %r -> %s", condition.field, condition.operator, condition.value, actual, result
    )
    return result


def evaluate_branch(branch: NextPromptBranch, output: dict[str, Any]) -> bool:
    return all(evaluate_condition(condition, output) for condition in branch.conditions)


def resolve_target(target: NextPromptTarget, output: dict[str, Any]) -> tuple[str, str] | None:
    prompt_area = target.static_prompt_area
    if not prompt_area and target.dynamic_prompt_area:
        prompt_area = extract_jsonpath_value(output, target.dynamic_prompt_area)
    prompt_key = target.static_prompt_key
    if not prompt_key and target.dynamic_prompt_key:
        prompt_key = extract_jsonpath_value(output, target.dynamic_prompt_key)
    if not prompt_area or not prompt_key:
        logger.debug("next_prompt target incomplete (area=%r, key=%r)", prompt_area, prompt_key)
        return None
    return prompt_area, prompt_key


def resolve_next_prompt(config: NextPromptConfig, output: dict[str, Any]) -> ResolvedNextPrompt | None:
    """
    Branches are tried in order and the first whose conditions all hold and
    whose target resolves wins; then the default branch. Without branches the
    config itself is the target.
    """
    if not config.is_branching():
        resolved = resolve_target(config, output)
        if resolved is None:
            return None
        return ResolvedNextPrompt(*resolved, resolution_type="simple")

    for index, branch in enumerate(config.branches):
        if not evaluate_branch(branch, output):
            continue
        resolved = resolve_target(branch, output)
        if resolved is not None:
            logger.debug("Matched next_prompt branch %d -> %s:%s", index, *resolved)
            return ResolvedNextPrompt(*resolved, resolution_type="branch", branch_index=index)

    if config.default_branch is not None:
        resolved = resolve_target(config.default_branch, output)
        if resolved is not None:
            logger.debug("Using default next_prompt branch -> %s:%s", *resolved)
            return ResolvedNextPrompt(*resolved, resolution_type="default")
    return None


def build_step_variables(merged_result: dict[str, Any], context_data: dict[str, Any]) -> PromptVariables:
    """Flatten context data, then merged output, into one dotted-name variables entry."""
    variables: dict[str, str] = {}

    def flatten(tree: dict[str, Any], prefix: str = "") -> None:
        for name, value in tree.items():
            full_name = f"{prefix}.{name}" if prefix else name
            if value is None:
                continue
            if isinstance(value, dict):
                flatten(value, full_name)
            else:
                variables[full_name] = _text(value)

    flatten(context_data)
    flatten(merged_result)
    return [variables] if variables else []


class DynamicDataExtractor:
    def __init__(self, caller: ServiceCaller, lookup: FallbackPromptLookup, llm: Optional[str] = None) -> None:
        self.caller = caller
        self.lookup = lookup
        self.llm = llm

    async def run(self, params: DynamicDataExtractParams) -> DynamicDataExtractResponse:
        step_results: list[DynamicExtractStepResult] = []
        errors: list[DynamicExtractError] = []
        merged_result: dict[str, Any] = {}
        stop_reason: DynamicExtractStopReason = "no_next_prompt"
        area, key = params.initial_prompt_area, params.initial_prompt_key
        first_step = True
        logger.info(
            "Starting dynamic data extract at %s:%s (max_depth=%d, continue_on_error=%s, document=%s)",
            area,
            key,
            params.max_depth,
            params.continue_on_error,
            params.has_document(),
        )

        for step_index in range(params.max_depth):
            logger.debug("Dynamic extract step %d/%d: %s:%s", step_index + 1, params.max_depth, area, key)

            variables = (
                params.initial_prompt_variables
                if first_step
                else build_step_variables(merged_result, params.context_data)
            )
            try:
                record, response = await self._execute_step(area, key, variables, params)
            except ExtractStepError as exc:
                logger.error("Dynamic extract step %d (%s:%s) failed: %s", step_index, area, key, exc)
                errors.append(DynamicExtractError(step_index=step_index, error=str(exc)))
                step_results.append(
                    DynamicExtractStepResult(
                        step_index=step_index, success=False, prompt_area=area, prompt_key=key, error=str(exc)
                    )
                )
                stop_reason = exc.reason
                if not params.continue_on_error:
                    break
                continue

            raw_text = response.text or ""
            parsed = parse_llm_json_response(raw_text)
            if parsed is not None:
                merged_result = deep_merge(merged_result, parsed)
            config = parse_next_prompt_config(record.next_prompt)
            resolved = resolve_next_prompt(config, parsed) if config is not None and parsed is not None else None
            resolution = NextPromptResolution(config=config)
            if resolved is not None:
                resolution = NextPromptResolution(
                    config=config,
                    resolved_area=resolved.prompt_area,
                    resolved_key=resolved.prompt_key,
                    matched_branch=resolved.resolution_type,
                    branch_index=resolved.branch_index,
                )
            step_results.append(
                DynamicExtractStepResult(
                    step_index=step_index,
                    success=True,
                    prompt_area=area,
                    prompt_key=key,
                    raw_text=raw_text,
                    parsed_result=parsed,
                    next_prompt_resolution=resolution,
                )
            )
            if resolved is None:
                stop_reason = "no_next_prompt"
                logger.info(
                    "Dynamic extract ended at step %d: %s",
                    step_index,
                    "could not resolve next_prompt" if config is not None else "no next_prompt configured",
                )
                break

            logger.info(
                "Step %d routes to %s:%s (%s)",
                step_index,
                resolved.prompt_area,
                resolved.prompt_key,
                resolved.resolution_type,
            )
            area, key = resolved.prompt_area, resolved.prompt_key
            first_step = False

        if len(step_results) >= params.max_depth:
            last = step_results[-1]
            if last.success and last.next_prompt_resolution and last.next_prompt_resolution.resolved_area:
                stop_reason = "max_depth"
                logger.warning("Dynamic extract stopped at max_depth %d", params.max_depth)

        successful_steps = sum(1 for step in step_results if step.success)
        logger.info(
            "Dynamic data extract complete: %d/%d successful, %d error(s), stop=%s",
            successful_steps,
            len(step_results),
            len(errors),
            stop_reason,
        )
        return DynamicDataExtractResponse(
            success=successful_steps > 0,
            merged_result=merged_result,
            step_results=step_results,
            errors=errors,
            total_steps=len(step_results),
            successful_steps=successful_steps,
            final_stop_reason=stop_reason,
        )

    async def _execute_step(
        self, area: str, key: str, variables: PromptVariables, params: DynamicDataExtractParams
    ) -> tuple[PromptRecord, LLMResponse]:
        try:
            record = self.lookup.get_prompt(area, key)
        except Exception as exc:
            raise ExtractStepError(str(exc), "error") from exc
        if record is None:
            raise ExtractStepError(f"Prompt not found: {area}/{key}", "next_prompt_not_found")
        try:
            response = await self._call(record.prompt_text, variables, params)
        except Exception as exc:
            raise ExtractStepError(str(exc), "error") from exc
        if not response.success:
            raise ExtractStepError(response.error or "LLM call failed", "error")
        return record, response

    async def _call(
        self, prompt_text: str, variables: PromptVariables, params: DynamicDataExtractParams
    ) -> LLMResponse:
        if params.image_b64 and params.image_mime_type:
            return await self.caller.image_text(
                ImageTextParams(
                    prompt=prompt_text,
                    prompt_variables=variables,
                    image_b64=params.image_b64,
                    image_mime_type=params.image_mime_type,
                ),
                self.llm,
            )
        return await self.caller.text_text(TextTextParams(prompt=prompt_text, prompt_variables=variables), self.llm)
