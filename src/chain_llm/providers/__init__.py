"""Provider interface, registry and the pydantic-ai reference provider."""

from chain_llm.providers.base import LLMProvider
from chain_llm.providers.registry import ProviderRegistry

__all__ = ["LLMProvider", "ProviderRegistry"]
