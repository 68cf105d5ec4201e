"""Pydantic model for the engine configuration file."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from chain_llm.errors import ConfigError
from chain_llm.models.cache_config import PromptCacheConfig
from chain_llm.models.provider_spec import ProviderSpec


class EngineConfig(BaseModel):
    enabled_llms: list[str] = Field(default_factory=list)
    primary_llm: Optional[str] = None
    cache: PromptCacheConfig = Field(default_factory=PromptCacheConfig)
    providers: dict[str, ProviderSpec] = Field(default_factory=dict)
    prompts_dir: Optional[str] = None

    @classmethod
    def load(cls, path: Path) -> "EngineConfig":
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        try:
            config = cls.model_validate(raw or {})
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
        if config.prompts_dir is not None and not Path(config.prompts_dir).is_absolute():
            config.prompts_dir = str(path.parent / config.prompts_dir)
        return config
