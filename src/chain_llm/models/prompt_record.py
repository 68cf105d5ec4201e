"""Pydantic models for stored prompt templates."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class LocalFilters(BaseModel):
    local_1: Optional[str] = None
    local_2: Optional[str] = None
    local_3: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.local_1 or self.local_2 or self.local_3)


class PromptRecord(BaseModel):
    id: str
    prompt_area: str
    prompt_key: str
    local_1: Optional[str] = None
    local_2: Optional[str] = None
    local_3: Optional[str] = None
    prompt_text: str
    prompt_variables: str = "[]"  # JSON array of variable descriptions
    prompt_notes: str = ""
    next_prompt: Optional[str] = None  # JSON routing config for dynamic extraction
    created_at: str = ""
    changed_at: str = ""

    def locals_key(self) -> tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.local_1, self.local_2, self.local_3)
