"""Service call execution: prompt resolution, provider validation and error classification."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from chain_llm import errors
from chain_llm.context import LLMContext
from chain_llm.context import RequestContext
from chain_llm.errors import PromptNotFoundError
from chain_llm.errors import ProviderError
from chain_llm.models.composite_params import ImageImageTextParams
from chain_llm.models.composite_params import TextImageTextParams
from chain_llm.models.llm_response import Base64Data
from chain_llm.models.llm_response import LLMErrorInfo
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import ServiceParams
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.models.service_type import ServiceType
from chain_llm.prompting import substitute_variables
from chain_llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=ServiceParams)

NETWORK_MARKERS = ("network", "econnrefused", "econnreset", "connection", "socket", "fetch failed")
RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "429")
API_KEY_MARKERS = ("api key", "unauthorized", "401", "authentication")
INVALID_REQUEST_MARKERS = ("invalid", "bad request", "400")


def build_error_response(
    code: str,
    message: str,
    retryable: bool = False,
    details: dict[str, Any] | None = None,
) -> LLMResponse:
    return LLMResponse(
        success=False,
        error=message,
        error_info=LLMErrorInfo(code=code, message=message, retryable=retryable, details=details or {}),
    )


def stage_failure(message: str, stage: LLMResponse, **carry: Any) -> LLMResponse:
    """Wrap a failed stage of a composite call, keeping its error code."""
    info = stage.error_info
    response = build_error_response(info.code if info else errors.UNKNOWN, message, info.retryable if info else False)
    return response.model_copy(update=carry)


def detect_error_code(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return errors.TIMEOUT
    message = str(exc).lower()
    if "timeout" in message or "timed out" in message:
        return errors.TIMEOUT
    if isinstance(exc, ConnectionError) or any(marker in message for marker in NETWORK_MARKERS):
        return errors.NETWORK_ERROR
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return errors.RATE_LIMITED
    if any(marker in message for marker in API_KEY_MARKERS):
        return errors.API_KEY_MISSING
    if any(marker in message for marker in INVALID_REQUEST_MARKERS):
        return errors.INVALID_REQUEST
    return errors.UNKNOWN


def is_retryable(code: str) -> bool:
    return code in (errors.NETWORK_ERROR, errors.TIMEOUT, errors.RATE_LIMITED)


class ServiceCaller:
    def __init__(self, context: LLMContext) -> None:
        self._context = context

    async def text_text(self, params: TextTextParams, llm: str | None = None) -> LLMResponse:
        return await self._call(ServiceType.TEXT_TEXT, params, llm, lambda provider, p: provider.text_text(p))

    async def image_text(self, params: ImageTextParams, llm: str | None = None) -> LLMResponse:
        return await self._call(ServiceType.IMAGE_TEXT, params, llm, lambda provider, p: provider.image_text(p))

    async def text_image(self, params: TextImageParams, llm: str | None = None) -> LLMResponse:
        return await self._call(ServiceType.TEXT_IMAGE, params, llm, lambda provider, p: provider.text_image(p))

    async def image_image(self, params: ImageImageParams, llm: str | None = None) -> LLMResponse:
        if not params.all_images():
            return build_error_response(
                errors.INVALID_REQUEST,
                "image_image requires at least one image (via image_b64/image_mime_type or images)",
            )
        return await self._call(ServiceType.IMAGE_IMAGE, params, llm, lambda provider, p: provider.image_image(p))

    async def text_image_text(self, params: TextImageTextParams, llm: str | None = None) -> LLMResponse:
        logger.info("Starting text_image_text")
        generated = await self.text_image(
            TextImageParams(prompt=params.prompt_image, prompt_variables=params.prompt_image_variables), llm
        )
        if not generated.success:
            return stage_failure(f"Image generation failed: {generated.error}", generated)
        if not generated.image_b64 or not generated.image_mime_type:
            return stage_failure("Image generation did not return an image", generated, text=generated.text)

        described = await self.image_text(
            ImageTextParams(
                prompt=params.prompt_text,
                prompt_variables=params.prompt_text_variables,
                image_b64=generated.image_b64,
                image_mime_type=generated.image_mime_type,
            ),
            llm,
        )
        image = {"image_b64": generated.image_b64, "image_mime_type": generated.image_mime_type}
        if not described.success:
            return stage_failure(f"Image analysis failed: {described.error}", described, **image)
        logger.info("text_image_text completed")
        return LLMResponse(success=True, text=described.text, **image)

    async def image_image_text(self, params: ImageImageTextParams, llm: str | None = None) -> LLMResponse:
        images = params.images
        if len(images) < 2:
            return build_error_response(errors.INVALID_REQUEST, "At least two images are required")
        if len(params.prompts) != len(images) - 1:
            return build_error_response(
                errors.INVALID_REQUEST,
                f"Expected {len(images) - 1} prompts for {len(images)} images, got {len(params.prompts)}",
            )
        if not params.description_prompt:
            return build_error_response(errors.INVALID_REQUEST, "Description prompt is required")

        logger.info("Starting image_image_text with %d images", len(images))
        current = images[0]
        for step, (prompt, image) in enumerate(zip(params.prompts, images[1:]), start=1):
            combined = await self.image_image(ImageImageParams(prompt=prompt, images=[current, image]), llm)
            if not combined.success:
                return stage_failure(f"Step {step} failed: {combined.error}", combined)
            if not combined.image_b64 or not combined.image_mime_type:
                return stage_failure(f"Step {step} did not return an image", combined)
            current = Base64Data(mime_type=combined.image_mime_type, data=combined.image_b64)
            logger.debug("image_image_text step %d produced an image", step)

        described = await self.image_text(
            ImageTextParams(
                prompt=params.description_prompt,
                prompt_variables=params.description_prompt_variables,
                image_b64=current.data,
                image_mime_type=current.mime_type,
            ),
            llm,
        )
        image = {"image_b64": current.data, "image_mime_type": current.mime_type}
        if not described.success:
            return stage_failure(f"Description failed: {described.error}", described, **image)
        logger.info("image_image_text completed after %d image step(s)", len(params.prompts))
        return LLMResponse(success=True, text=described.text, **image)

    def resolve_prompt(self, params: ServiceParams) -> str:
        if params.prompt_area and params.prompt_key:
            prompt_text = self._context.lookup.get_prompt_text(params.prompt_area, params.prompt_key, params.locals)
        else:
            prompt_text = params.prompt
        return substitute_variables(prompt_text, params.prompt_variables)

    async def _call(
        self,
        service_type: ServiceType,
        params: P,
        llm: str | None,
        invoke: Callable[[LLMProvider, P], Awaitable[LLMResponse]],
    ) -> LLMResponse:
        logger.debug("Starting %s call (llm=%s)", service_type.value, llm or "primary")
        try:
            final_prompt = self.resolve_prompt(params)
        except PromptNotFoundError as exc:
            logger.error("%s", exc)
            return build_error_response(
                exc.code, str(exc), details={"prompt_area": exc.prompt_area, "prompt_key": exc.prompt_key}
            )
        except Exception as exc:
            code = detect_error_code(exc)
            logger.error("Prompt resolution for %s failed: %s (%s)", service_type.value, exc, code)
            return build_error_response(code, str(exc) or type(exc).__name__, is_retryable(code))

        try:
            provider = self._context.registry.get_validated_provider(llm, service_type)
        except ProviderError as exc:
            return build_error_response(exc.code, exc.message, details=exc.details)

        request_params = params.model_copy(update={"prompt": final_prompt})
        request = RequestContext(
            service_type=service_type,
            provider=provider.get_name(),
            params=request_params.model_dump(exclude={"image_b64", "images"}),
        )
        logger.debug(
            "Calling provider %s model=%s for %s",
            provider.get_name(),
            provider.get_model_for_service(service_type) or "default",
            service_type.value,
        )
        await self._run_hook("before_request", request)

        try:
            response = await invoke(provider, request_params)
        except Exception as exc:  # provider failures become error responses
            code = detect_error_code(exc)
            logger.error("Error in %s call to %s: %s (%s)", service_type.value, provider.get_name(), exc, code)
            response = build_error_response(
                code, str(exc) or type(exc).__name__, is_retryable(code), {"provider": provider.get_name()}
            )
            await self._run_hook("on_error", request, response)
            return response

        logger.debug("Response from %s: success=%s error=%s", provider.get_name(), response.success, response.error)
        if response.success:
            await self._run_hook("after_response", request, response)
        else:
            await self._run_hook("on_error", request, response)
        return response

    async def _run_hook(self, name: str, *args: Any) -> None:
        hook = getattr(self._context.hooks, name)
        if hook is None:
            return
        try:
            await hook(*args)
        except Exception:
            logger.exception("LLM hook %s failed", name)
