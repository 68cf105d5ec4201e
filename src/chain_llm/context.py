"""Engine context: the registry, cache and prompt lookup shared by chain runs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

from chain_llm.models.engine_config import EngineConfig
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.service_type import ServiceType
from chain_llm.prompts.cache import PromptCache
from chain_llm.prompts.lookup import FallbackPromptLookup
from chain_llm.prompts.store import InMemoryPromptStore
from chain_llm.prompts.store import PromptStore
from chain_llm.prompts.store import load_prompt_dir
from chain_llm.providers.pydantic_ai_provider import PydanticAIProvider
from chain_llm.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    service_type: ServiceType
    provider: str
    params: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class LLMHooks:
    before_request: Callable[[RequestContext], Awaitable[None]] | None = None
    after_response: Callable[[RequestContext, LLMResponse], Awaitable[None]] | None = None
    on_error: Callable[[RequestContext, LLMResponse], Awaitable[None]] | None = None


@dataclass
class LLMContext:
    registry: ProviderRegistry
    cache: PromptCache
    store: PromptStore
    hooks: LLMHooks = field(default_factory=LLMHooks)

    @property
    def lookup(self) -> FallbackPromptLookup:
        return FallbackPromptLookup(self.store, self.cache)

    @classmethod
    def create(
        cls,
        *,
        registry: ProviderRegistry | None = None,
        cache: PromptCache | None = None,
        store: PromptStore | None = None,
    ) -> "LLMContext":
        return cls(
            registry=registry if registry is not None else ProviderRegistry(),
            cache=cache if cache is not None else PromptCache(),
            store=store if store is not None else InMemoryPromptStore(),
        )


def load_providers(config: EngineConfig, registry: ProviderRegistry) -> None:
    """
    Register a provider for every configured provider whose API key is present.
    An enabled provider without a key stays unregistered so lookups report
    the missing credential.
    """
    for name, spec in config.providers.items():
        env_var_name = spec.env_var_name(name)
        registry.set_api_key_env(name, env_var_name)
        if not os.environ.get(env_var_name):
            logger.warning("Skipping provider %s: %s is not set", name, env_var_name)
            continue
        registry.register_provider(PydanticAIProvider(name, spec))
    registry.set_enabled_llms(config.enabled_llms)
    registry.set_primary_llm(config.primary_llm)
    logger.info(
        "Providers loaded: registered=%s enabled=%s primary=%s",
        registry.get_registered_providers(),
        registry.get_enabled_llms(),
        registry.get_primary_llm(),
    )


def build_context(config: EngineConfig, prompt_roots: list[Path] | None = None) -> LLMContext:
    registry = ProviderRegistry()
    load_providers(config, registry)
    roots = list(prompt_roots or [])
    if config.prompts_dir:
        roots.append(Path(config.prompts_dir))
    store = load_prompt_dir(roots) if roots else InMemoryPromptStore()
    return LLMContext(registry=registry, cache=PromptCache(config.cache), store=store)
