"""Pydantic models for next_prompt routing between dynamic extract steps."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

NextPromptOperator = Literal["==", "!=", ">", "<", ">=", "<=", "contains", "startsWith", "endsWith"]


class NextPromptCondition(BaseModel):
    field: str  # JSONPath into the step output, e.g. $.document.type
    operator: NextPromptOperator
    value: Union[bool, int, float, str]


class NextPromptTarget(BaseModel):
    """Static names win over JSONPath lookups into the step output."""

    static_prompt_area: Optional[str] = None
    dynamic_prompt_area: Optional[str] = None
    static_prompt_key: Optional[str] = None
    dynamic_prompt_key: Optional[str] = None

    def is_complete(self) -> bool:
        has_area = bool(self.static_prompt_area or self.dynamic_prompt_area)
        has_key = bool(self.static_prompt_key or self.dynamic_prompt_key)
        return has_area and has_key


class NextPromptBranch(NextPromptTarget):
    conditions: list[NextPromptCondition] = Field(default_factory=list)


class NextPromptConfig(NextPromptTarget):
    branches: list[NextPromptBranch] = Field(default_factory=list)
    default_branch: Optional[NextPromptBranch] = None

    def is_branching(self) -> bool:
        return bool(self.branches) or self.default_branch is not None

    def is_routable(self) -> bool:
        if self.is_complete():
            return True
        if any(branch.is_complete() for branch in self.branches):
            return True
        return self.default_branch is not None and self.default_branch.is_complete()
