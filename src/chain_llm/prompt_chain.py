"""Sequential execution of prompt chains."""

from __future__ import annotations

import logging
from typing import Optional

from chain_llm.chain_resolver import build_prompt_variables
from chain_llm.chain_resolver import resolve_chain_field
from chain_llm.chain_resolver import resolve_chain_image
from chain_llm.deep_merge import merge_chain_results
from chain_llm.errors import ChainReferenceError
from chain_llm.errors import ChainStepError
from chain_llm.json_utils import parse_llm_json_response
from chain_llm.models.chain_call import ChainCallDefinition
from chain_llm.models.chain_call import PromptChainParams
from chain_llm.models.chain_result import ChainCallError
from chain_llm.models.chain_result import ChainCallResult
from chain_llm.models.chain_result import PromptChainResponse
from chain_llm.models.llm_response import Base64Data
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import PromptVariables
from chain_llm.models.service_params import ServiceParams
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.models.service_type import ServiceType
from chain_llm.service_calls import ServiceCaller

logger = logging.getLogger(__name__)

UNRESOLVED = "unresolved"


def build_service_params(
    call_def: ChainCallDefinition,
    prompt_area: str,
    prompt_key: str,
    prompt_variables: PromptVariables,
    previous_results: list[ChainCallResult],
) -> ServiceParams:
    """
    Build the typed parameters for one chain call.
    Raises ChainStepError when a required image cannot be resolved.
    """
    base = {"prompt_area": prompt_area, "prompt_key": prompt_key, "prompt_variables": prompt_variables}

    if call_def.call_type == ServiceType.TEXT_TEXT:
        return TextTextParams(**base)
    if call_def.call_type == ServiceType.TEXT_IMAGE:
        return TextImageParams(**base)

    if call_def.call_type == ServiceType.IMAGE_TEXT:
        if call_def.image_b64 is None or call_def.image_mime_type is None:
            raise ChainStepError("image_text requires image_b64 and image_mime_type fields")
        image_b64 = resolve_chain_field(call_def.image_b64, previous_results)
        if not image_b64:
            raise ChainStepError("Could not resolve image_b64 for image_text call")
        image_mime_type = resolve_chain_field(call_def.image_mime_type, previous_results)
        if not image_mime_type:
            raise ChainStepError("Could not resolve image_mime_type for image_text call")
        return ImageTextParams(**base, image_b64=image_b64, image_mime_type=image_mime_type)

    images: list[Base64Data] = []
    if call_def.images:
        for image_def in call_def.images:
            resolved = resolve_chain_image(image_def, previous_results)
            if resolved is None:
                logger.warning("Failed to resolve image in images list")
                continue
            images.append(Base64Data(mime_type=resolved.image_mime_type, data=resolved.image_b64))
    elif call_def.image_b64 is not None and call_def.image_mime_type is not None:
        image_b64 = resolve_chain_field(call_def.image_b64, previous_results)
        image_mime_type = resolve_chain_field(call_def.image_mime_type, previous_results)
        if image_b64 and image_mime_type:
            images.append(Base64Data(mime_type=image_mime_type, data=image_b64))

    if not images:
        raise ChainStepError("image_image requires at least one image (via image_b64/image_mime_type or images list)")
    logger.debug("Resolved %d image(s) for image_image", len(images))
    return ImageImageParams(**base, images=images)


class PromptChain:
    """
    Runs chain calls one after another. Each executed step appends exactly one
    ChainCallResult, so result positions always equal step indices and later
    call[N] references stay positional even when earlier steps fail.
    """

    def __init__(self, caller: ServiceCaller, llm: Optional[str] = None) -> None:
        self.caller = caller
        self.llm = llm

    async def run(self, params: PromptChainParams) -> PromptChainResponse:
        call_results: list[ChainCallResult] = []
        errors: list[ChainCallError] = []
        total_calls = len(params.chain_calls)
        logger.info(
            "Starting prompt chain with %d call(s) (continue_on_error=%s)", total_calls, params.continue_on_error
        )

        for index, call_def in enumerate(params.chain_calls):
            result = await self._run_step(index, call_def, call_results)
            call_results.append(result)
            if result.success:
                continue
            errors.append(ChainCallError(call_index=index, error=result.error or "Unknown error"))
            if not params.continue_on_error:
                logger.info("Stopping chain after failed call %d", index)
                break

        successful_calls = sum(1 for result in call_results if result.success)
        merged_result = merge_chain_results(call_results)
        logger.info(
            "Prompt chain finished: %d/%d successful, %d error(s)", successful_calls, total_calls, len(errors)
        )
        return PromptChainResponse(
            success=successful_calls == total_calls,
            merged_result=merged_result,
            call_results=call_results,
            errors=errors,
            total_calls=total_calls,
            successful_calls=successful_calls,
        )

    async def _run_step(
        self,
        index: int,
        call_def: ChainCallDefinition,
        previous_results: list[ChainCallResult],
    ) -> ChainCallResult:
        call_type = call_def.call_type
        prompt_area: str | None = None
        prompt_key: str | None = None
        logger.debug("Executing chain call %d (%s)", index, call_type.value)

        try:
            prompt_area = resolve_chain_field(call_def.prompt_area, previous_results)
            prompt_key = resolve_chain_field(call_def.prompt_key, previous_results)
            if not prompt_area or not prompt_key:
                raise ChainStepError(f"Could not resolve prompt_area or prompt_key for call {index}")
            variables = build_prompt_variables(call_def.variables, previous_results)
            service_params = build_service_params(call_def, prompt_area, prompt_key, variables, previous_results)
        except (ChainReferenceError, ChainStepError) as exc:
            logger.error("Chain call %d failed before dispatch: %s", index, exc)
            return _failure(index, str(exc), prompt_area, prompt_key)

        try:
            response = await self._dispatch(service_params, call_def.llm or self.llm)
        except Exception as exc:
            logger.exception("Chain call %d raised during dispatch", index)
            return _failure(index, str(exc), prompt_area, prompt_key)
        if not response.success:
            error = response.error or "Unknown error"
            logger.error("Chain call %d failed: %s", index, error)
            return _failure(index, error, prompt_area, prompt_key)

        raw_text: str | None = None
        parsed_result = None
        if call_type.produces_text():
            raw_text = response.text or ""
            parsed_result = parse_llm_json_response(raw_text)
        image_b64 = response.image_b64 if call_type.produces_image() else None
        image_mime_type = response.image_mime_type if call_type.produces_image() else None

        logger.info(
            "Chain call %d completed (%s:%s, parsed=%s)", index, prompt_area, prompt_key, parsed_result is not None
        )
        return ChainCallResult(
            call_index=index,
            success=True,
            prompt_area=prompt_area,
            prompt_key=prompt_key,
            raw_text=raw_text,
            parsed_result=parsed_result,
            image_b64=image_b64,
            image_mime_type=image_mime_type,
        )

    async def _dispatch(self, params: ServiceParams, llm: str | None) -> LLMResponse:
        if isinstance(params, TextTextParams):
            return await self.caller.text_text(params, llm)
        if isinstance(params, ImageTextParams):
            return await self.caller.image_text(params, llm)
        if isinstance(params, TextImageParams):
            return await self.caller.text_image(params, llm)
        if isinstance(params, ImageImageParams):
            return await self.caller.image_image(params, llm)
        raise ChainStepError(f"Unsupported service params: {type(params).__name__}")


def _failure(index: int, error: str, prompt_area: str | None, prompt_key: str | None) -> ChainCallResult:
    return ChainCallResult(
        call_index=index,
        success=False,
        error=error,
        prompt_area=prompt_area or UNRESOLVED,
        prompt_key=prompt_key or UNRESOLVED,
    )
