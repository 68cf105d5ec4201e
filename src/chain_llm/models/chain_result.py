"""Pydantic models for chain execution results."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChainCallResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    call_index: int
    success: bool
    prompt_area: Optional[str] = None
    prompt_key: Optional[str] = None
    raw_text: Optional[str] = None
    parsed_result: Optional[dict[str, Any]] = None
    image_b64: Optional[str] = None
    image_mime_type: Optional[str] = None
    error: Optional[str] = None


class ChainCallError(BaseModel):
    call_index: int
    error: str


class PromptChainResponse(BaseModel):
    success: bool
    merged_result: dict[str, Any] = Field(default_factory=dict)
    call_results: list[ChainCallResult] = Field(default_factory=list)
    errors: list[ChainCallError] = Field(default_factory=list)
    total_calls: int
    successful_calls: int
