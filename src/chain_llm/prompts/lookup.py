"""Most-specific-first prompt lookup with a cache in front of base prompts."""

from __future__ import annotations

import logging
from typing import Optional

from chain_llm.errors import PromptNotFoundError
from chain_llm.models.prompt_record import LocalFilters
from chain_llm.models.prompt_record import PromptRecord
from chain_llm.prompts.cache import PromptCache
from chain_llm.prompts.store import PromptStore

logger = logging.getLogger(__name__)

LocalsQuery = tuple[Optional[str], Optional[str], Optional[str]]


def fallback_levels(locals: LocalFilters | None) -> list[tuple[str, LocalsQuery]]:
    """Queries to try, most specific first. The base query always comes last."""
    levels: list[tuple[str, LocalsQuery]] = []
    if locals is not None:
        if locals.local_1 and locals.local_2 and locals.local_3:
            levels.append(("all locals", (locals.local_1, locals.local_2, locals.local_3)))
        if locals.local_1 and locals.local_2:
            levels.append(("local_1 and local_2", (locals.local_1, locals.local_2, None)))
        if locals.local_1:
            levels.append(("local_1 only", (locals.local_1, None, None)))
    levels.append(("base (no locals)", (None, None, None)))
    return levels


class FallbackPromptLookup:
    def __init__(self, store: PromptStore, cache: PromptCache | None = None) -> None:
        self.store = store
        self.cache = cache

    def _get_base(self, prompt_area: str, prompt_key: str) -> PromptRecord | None:
        if self.cache is not None:
            cached = self.cache.get(prompt_area, prompt_key)
            if cached is not None:
                logger.debug("Prompt cache hit for %s:%s", prompt_area, prompt_key)
                return cached
        record = self.store.find_prompt(prompt_area, prompt_key, None, None, None)
        if record is not None and self.cache is not None:
            self.cache.set(record)
        return record

    def get_prompt(
        self,
        prompt_area: str,
        prompt_key: str,
        locals: LocalFilters | None = None,
    ) -> PromptRecord | None:
        if locals is not None and locals.is_empty():
            locals = None

        for description, (local_1, local_2, local_3) in fallback_levels(locals):
            if (local_1, local_2, local_3) == (None, None, None):
                record = self._get_base(prompt_area, prompt_key)
            else:
                record = self.store.find_prompt(prompt_area, prompt_key, local_1, local_2, local_3)
            if record is not None:
                logger.info(
                    "Prompt %s retrieved for %s:%s (matched %s)", record.id, prompt_area, prompt_key, description
                )
                return record

        logger.warning("Prompt not found for %s:%s with locals %s", prompt_area, prompt_key, locals)
        return None

    def get_prompt_text(
        self,
        prompt_area: str,
        prompt_key: str,
        locals: LocalFilters | None = None,
    ) -> str:
        record = self.get_prompt(prompt_area, prompt_key, locals)
        if record is None:
            raise PromptNotFoundError(prompt_area, prompt_key)
        return record.prompt_text
