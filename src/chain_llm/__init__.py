"""Public package exports."""

from chain_llm.context import LLMContext
from chain_llm.context import LLMHooks
from chain_llm.context import build_context
from chain_llm.dynamic_extract import DynamicDataExtractor
from chain_llm.orchestrator import Orchestrator
from chain_llm.prompt_chain import PromptChain
from chain_llm.service_calls import ServiceCaller

__all__ = [
    "DynamicDataExtractor",
    "LLMContext",
    "LLMHooks",
    "Orchestrator",
    "PromptChain",
    "ServiceCaller",
    "build_context",
]
