"""Reference provider backed by pydantic-ai's OpenAI-compatible chat model."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any

from pydantic_ai import Agent, BinaryContent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.provider_spec import ProviderSpec
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.models.service_type import ServiceType
from chain_llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


class PydanticAIProvider(LLMProvider):
    """
    Text services run through a pydantic-ai Agent. Image output services call
    the images endpoint of the same OpenAI-compatible client.
    """

    def __init__(self, name: str, spec: ProviderSpec) -> None:
        self._name = name.lower()
        self._spec = spec
        self._capabilities = set(spec.capabilities)
        self._provider: OpenAIProvider | None = None
        self._models: dict[ServiceType, OpenAIChatModel] = {}

    def get_name(self) -> str:
        return self._name

    def get_capabilities(self) -> set[ServiceType]:
        return set(self._capabilities)

    def get_model_for_service(self, service_type: ServiceType) -> str | None:
        if service_type not in self._capabilities:
            return None
        return self._spec.model_for(service_type)

    def _openai_provider(self) -> OpenAIProvider:
        if self._provider is None:
            self._provider = build_provider(self._spec, self._name)
        return self._provider

    def _model(self, service_type: ServiceType) -> OpenAIChatModel:
        model = self._models.get(service_type)
        if model is None:
            model = OpenAIChatModel(self._spec.model_for(service_type), provider=self._openai_provider())
            self._models[service_type] = model
        return model

    def _model_settings(self) -> ModelSettings | None:
        settings: ModelSettings = {}
        if self._spec.temperature is not None:
            settings["temperature"] = self._spec.temperature
        if self._spec.max_tokens is not None:
            settings["max_tokens"] = self._spec.max_tokens
        return settings or None

    async def text_text(self, params: TextTextParams) -> LLMResponse:
        agent = Agent(self._model(ServiceType.TEXT_TEXT), output_type=str, model_settings=self._model_settings())
        result = await agent.run(params.prompt)
        return LLMResponse(success=True, text=result.output)

    async def image_text(self, params: ImageTextParams) -> LLMResponse:
        agent = Agent(self._model(ServiceType.IMAGE_TEXT), output_type=str, model_settings=self._model_settings())
        image = BinaryContent(data=base64.b64decode(params.image_b64), media_type=params.image_mime_type)
        result = await agent.run([params.prompt, image])
        return LLMResponse(success=True, text=result.output)

    async def text_image(self, params: TextImageParams) -> LLMResponse:
        model_name = self._spec.model_for(ServiceType.TEXT_IMAGE)
        response = await self._openai_provider().client.images.generate(
            model=model_name, prompt=params.prompt, **image_format_options(model_name)
        )
        return image_response(response)

    async def image_image(self, params: ImageImageParams) -> LLMResponse:
        model_name = self._spec.model_for(ServiceType.IMAGE_IMAGE)
        files = [
            (f"image-{index}.{MIME_EXTENSIONS.get(image.mime_type, 'png')}", base64.b64decode(image.data), image.mime_type)
            for index, image in enumerate(params.all_images())
        ]
        response = await self._openai_provider().client.images.edit(
            model=model_name, image=files, prompt=params.prompt, **image_format_options(model_name)
        )
        return image_response(response)


def image_format_options(model_name: str) -> dict[str, Any]:
    # gpt-image models always return base64 and reject response_format.
    if model_name.startswith("dall-e"):
        return {"response_format": "b64_json"}
    return {}


def image_response(response: Any) -> LLMResponse:
    data = response.data or []
    if not data or not data[0].b64_json:
        logger.warning("Images endpoint returned no base64 image data")
        return LLMResponse(success=False, error="No image data in response")
    output_format = getattr(response, "output_format", None) or "png"
    return LLMResponse(
        success=True,
        text=getattr(data[0], "revised_prompt", None),
        image_b64=data[0].b64_json,
        image_mime_type=f"image/{'jpeg' if output_format == 'jpg' else output_format}",
    )


def build_provider(spec: ProviderSpec, provider_name: str) -> OpenAIProvider:
    api_key = os.environ.get(spec.env_var_name(provider_name), "noop")
    return OpenAIProvider(base_url=spec.base_url, api_key=api_key)

