"""Pydantic models for provider responses."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class Base64Data(BaseModel):
    mime_type: str
    data: str


class LLMErrorInfo(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class LLMResponse(BaseModel):
    success: bool
    text: Optional[str] = None
    image_b64: Optional[str] = None
    image_mime_type: Optional[str] = None
    error: Optional[str] = None
    error_info: Optional[LLMErrorInfo] = None
