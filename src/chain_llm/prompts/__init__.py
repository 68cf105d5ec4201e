"""Prompt storage, caching and lookup."""

from chain_llm.prompts.cache import PromptCache
from chain_llm.prompts.cache import clear_prompt_cache
from chain_llm.prompts.cache import configure_prompt_cache
from chain_llm.prompts.cache import get_prompt_cache
from chain_llm.prompts.lookup import FallbackPromptLookup
from chain_llm.prompts.store import InMemoryPromptStore
from chain_llm.prompts.store import PromptStore
from chain_llm.prompts.store import load_prompt_dir

__all__ = [
    "FallbackPromptLookup",
    "InMemoryPromptStore",
    "PromptCache",
    "PromptStore",
    "clear_prompt_cache",
    "configure_prompt_cache",
    "get_prompt_cache",
    "load_prompt_dir",
]
