"""Pydantic models for per-service call parameters."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from chain_llm.models.llm_response import Base64Data
from chain_llm.models.prompt_record import LocalFilters

PromptVariables = list[dict[str, str]]


class ServiceParams(BaseModel):
    prompt: str = ""
    prompt_variables: PromptVariables = Field(default_factory=list)
    prompt_area: Optional[str] = None
    prompt_key: Optional[str] = None
    locals: Optional[LocalFilters] = None


class TextTextParams(ServiceParams):
    pass


class ImageTextParams(ServiceParams):
    image_b64: str
    image_mime_type: str


class TextImageParams(ServiceParams):
    pass


class ImageImageParams(ServiceParams):
    image_b64: Optional[str] = None
    image_mime_type: Optional[str] = None
    images: list[Base64Data] = Field(default_factory=list)

    def all_images(self) -> list[Base64Data]:
        if self.images:
            return list(self.images)
        if self.image_b64 and self.image_mime_type:
            return [Base64Data(mime_type=self.image_mime_type, data=self.image_b64)]
        return []
