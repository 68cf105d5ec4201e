"""Pydantic models for prompt cache configuration and statistics."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_CACHE_TTL_MS = 5 * 60 * 1000
DEFAULT_MAX_CACHE_SIZE = 100


class PromptCacheConfig(BaseModel):
    ttl_ms: int = Field(default=DEFAULT_CACHE_TTL_MS, ge=0)
    max_size: int = Field(default=DEFAULT_MAX_CACHE_SIZE, ge=1)
    enabled: bool = True


class CacheStats(BaseModel):
    hits: int
    misses: int
    size: int
    max_size: int
    hit_rate: float
