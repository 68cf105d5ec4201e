"""Helper for running prompt chains and single service calls."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from chain_llm.context import LLMContext
from chain_llm.context import build_context
from chain_llm.dynamic_extract import DynamicDataExtractor
from chain_llm.models.chain_call import ChainCallDefinition
from chain_llm.models.chain_call import PromptChainParams
from chain_llm.models.chain_result import PromptChainResponse
from chain_llm.models.composite_params import ImageImageTextParams
from chain_llm.models.composite_params import TextImageTextParams
from chain_llm.models.dynamic_extract import DynamicDataExtractParams
from chain_llm.models.dynamic_extract import DynamicDataExtractResponse
from chain_llm.models.engine_config import EngineConfig
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.prompt_chain import PromptChain
from chain_llm.service_calls import ServiceCaller

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        context: LLMContext | None = None,
        config: EngineConfig | None = None,
        prompt_roots: list[Path] | None = None,
    ) -> None:
        if context is None:
            context = build_context(config or EngineConfig(), prompt_roots)
        self.context: LLMContext = context
        self.caller: ServiceCaller = ServiceCaller(context)

    @classmethod
    def from_config_file(cls, path: Path, prompt_roots: list[Path] | None = None) -> "Orchestrator":
        return cls(config=EngineConfig.load(path), prompt_roots=prompt_roots)

    async def run_chain(
        self,
        chain: PromptChainParams | Sequence[ChainCallDefinition],
        continue_on_error: Optional[bool] = None,
        llm: str | None = None,
    ) -> PromptChainResponse:
        if not isinstance(chain, PromptChainParams):
            chain = PromptChainParams(chain_calls=list(chain))
        if continue_on_error is not None:
            chain = chain.model_copy(update={"continue_on_error": continue_on_error})
        return await PromptChain(self.caller, llm).run(chain)

    async def text_text(self, params: TextTextParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.text_text(params, llm)

    async def image_text(self, params: ImageTextParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.image_text(params, llm)

    async def text_image(self, params: TextImageParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.text_image(params, llm)

    async def image_image(self, params: ImageImageParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.image_image(params, llm)

    async def text_image_text(self, params: TextImageTextParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.text_image_text(params, llm)

    async def image_image_text(self, params: ImageImageTextParams, llm: str | None = None) -> LLMResponse:
        return await self.caller.image_image_text(params, llm)

    async def dynamic_data_extract(
        self, params: DynamicDataExtractParams, llm: str | None = None
    ) -> DynamicDataExtractResponse:
        return await DynamicDataExtractor(self.caller, self.context.lookup, llm).run(params)
