"""Input/output helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chain_llm.errors import ConfigError
from chain_llm.models.chain_call import PromptChainParams


def parse_chain_text(text: str, source: str = "<text>") -> PromptChainParams:
    """
    Parse chain JSON. Accepts either a bare list of chain calls or an object
    with `chain_calls` and an optional `continue_on_error`.
    """
    try:
        raw: Any = json.loads(text)
    except ValueError as exc:
        raise ConfigError(f"Invalid chain JSON in {source}: {exc}") from exc
    if isinstance(raw, list):
        raw = {"chain_calls": raw}
    try:
        return PromptChainParams.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid chain definition in {source}: {exc}") from exc


def load_chain_file(path: Path) -> PromptChainParams:
    if not path.exists():
        raise FileNotFoundError(path)
    return parse_chain_text(path.read_text(encoding="utf-8"), str(path))


def write_output(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
