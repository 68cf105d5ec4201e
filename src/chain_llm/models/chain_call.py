"""Pydantic models for chain call definitions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from chain_llm.models.chain_field import ChainFieldDefinition
from chain_llm.models.chain_field import ChainImageDefinition
from chain_llm.models.chain_field import ChainVariableDefinition
from chain_llm.models.service_type import ServiceType


class ChainCallDefinition(BaseModel):
    prompt_area: ChainFieldDefinition
    prompt_key: ChainFieldDefinition
    variables: list[ChainVariableDefinition] = Field(default_factory=list)
    call_type: ServiceType = ServiceType.TEXT_TEXT
    image_b64: Optional[ChainFieldDefinition] = None
    image_mime_type: Optional[ChainFieldDefinition] = None
    images: list[ChainImageDefinition] = Field(default_factory=list)
    llm: Optional[str] = None  # overrides the chain-level provider for this call


class PromptChainParams(BaseModel):
    chain_calls: list[ChainCallDefinition]
    continue_on_error: bool = True
