"""Provider handler interface."""

from __future__ import annotations

from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.models.service_type import ServiceType


class LLMProvider:
    """
    A capability-qualified backend. Subclasses implement the service methods
    listed in get_capabilities(); the rest keep raising NotImplementedError.
    """

    def get_name(self) -> str:
        raise NotImplementedError("LLMProvider.get_name must be implemented by subclasses.")

    def get_capabilities(self) -> set[ServiceType]:
        raise NotImplementedError("LLMProvider.get_capabilities must be implemented by subclasses.")

    def get_model_for_service(self, service_type: ServiceType) -> str | None:
        return None

    async def text_text(self, params: TextTextParams) -> LLMResponse:
        raise NotImplementedError(f"{self.get_name()} does not implement text_text.")

    async def image_text(self, params: ImageTextParams) -> LLMResponse:
        raise NotImplementedError(f"{self.get_name()} does not implement image_text.")

    async def text_image(self, params: TextImageParams) -> LLMResponse:
        raise NotImplementedError(f"{self.get_name()} does not implement text_image.")

    async def image_image(self, params: ImageImageParams) -> LLMResponse:
        raise NotImplementedError(f"{self.get_name()} does not implement image_image.")
