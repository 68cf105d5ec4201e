"""Pydantic models for the two-stage image and text service compositions."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chain_llm.models.llm_response import Base64Data
from chain_llm.models.service_params import PromptVariables


class TextImageTextParams(BaseModel):
    """Generate an image from `prompt_image`, then describe it with `prompt_text`."""

    prompt_image: str
    prompt_text: str
    prompt_image_variables: PromptVariables = Field(default_factory=list)
    prompt_text_variables: PromptVariables = Field(default_factory=list)


class ImageImageTextParams(BaseModel):
    """
    Fold `images` pairwise through image_image (prompts[i] combines the running
    result with image i + 1), then describe the final image.
    """

    images: list[Base64Data]
    prompts: list[str]
    description_prompt: str
    description_prompt_variables: PromptVariables = Field(default_factory=list)
