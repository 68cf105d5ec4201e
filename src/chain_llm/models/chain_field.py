"""Pydantic models for chain field and variable definitions."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class DirectField(BaseModel):
    match_type: Literal["direct"] = "direct"
    value: str
    variable_name: str | None = None


class CallChainField(BaseModel):
    match_type: Literal["call_chain"] = "call_chain"
    value: str  # call[N].property.path
    variable_name: str | None = None


ChainFieldDefinition = Annotated[Union[DirectField, CallChainField], Field(discriminator="match_type")]

# Variables share the field shape; the builder drops entries without a variable_name.
ChainVariableDefinition = ChainFieldDefinition


class ChainImageDefinition(BaseModel):
    image_b64: ChainFieldDefinition
    image_mime_type: ChainFieldDefinition
