"""Pydantic models for dynamic data extraction runs."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from chain_llm.models.next_prompt import NextPromptConfig
from chain_llm.models.service_params import PromptVariables

DEFAULT_MAX_DEPTH = 10

DynamicExtractStopReason = Literal["no_next_prompt", "max_depth", "error", "next_prompt_not_found"]


class DynamicDataExtractParams(BaseModel):
    initial_prompt_area: str
    initial_prompt_key: str
    initial_prompt_variables: PromptVariables = Field(default_factory=list)
    image_b64: Optional[str] = None
    image_mime_type: Optional[str] = None
    context_data: dict[str, Any] = Field(default_factory=dict)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    continue_on_error: bool = False

    def has_document(self) -> bool:
        return bool(self.image_b64 and self.image_mime_type)


class NextPromptResolution(BaseModel):
    config: Optional[NextPromptConfig] = None
    resolved_area: Optional[str] = None
    resolved_key: Optional[str] = None
    matched_branch: Optional[Literal["simple", "branch", "default"]] = None
    branch_index: Optional[int] = None


class DynamicExtractStepResult(BaseModel):
    step_index: int
    success: bool
    prompt_area: str
    prompt_key: str
    raw_text: Optional[str] = None
    parsed_result: Optional[dict[str, Any]] = None
    next_prompt_resolution: Optional[NextPromptResolution] = None
    error: Optional[str] = None


class DynamicExtractError(BaseModel):
    step_index: int
    error: str


class DynamicDataExtractResponse(BaseModel):
    success: bool
    merged_result: dict[str, Any] = Field(default_factory=dict)
    step_results: list[DynamicExtractStepResult] = Field(default_factory=list)
    errors: list[DynamicExtractError] = Field(default_factory=list)
    total_steps: int = 0
    successful_steps: int = 0
    final_stop_reason: DynamicExtractStopReason = "no_next_prompt"
