"""Prompt stores: the lookup contract and a Markdown-backed in-memory implementation."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

import frontmatter
from pydantic import ValidationError

from chain_llm.errors import ConfigError
from chain_llm.models.prompt_record import PromptRecord

logger = logging.getLogger(__name__)

StoreKey = tuple[str, str, Optional[str], Optional[str], Optional[str]]


class PromptStore(Protocol):
    def find_prompt(
        self,
        prompt_area: str,
        prompt_key: str,
        local_1: str | None = None,
        local_2: str | None = None,
        local_3: str | None = None,
    ) -> PromptRecord | None:
        """Exact match on all five columns; a None local only matches a missing local."""
        ...


class InMemoryPromptStore:
    def __init__(self, records: list[PromptRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: dict[StoreKey, PromptRecord] = {}
        for record in records or []:
            self.add(record)

    @staticmethod
    def _key(record: PromptRecord) -> StoreKey:
        return (record.prompt_area, record.prompt_key, *record.locals_key())

    def add(self, record: PromptRecord, *, replace: bool = False) -> bool:
        key = self._key(record)
        with self._lock:
            if key in self._records and not replace:
                return False
            self._records[key] = record
            return True

    def find_prompt(
        self,
        prompt_area: str,
        prompt_key: str,
        local_1: str | None = None,
        local_2: str | None = None,
        local_3: str | None = None,
    ) -> PromptRecord | None:
        return self._records.get((prompt_area, prompt_key, local_1, local_2, local_3))

    def get_by_id(self, record_id: str) -> PromptRecord | None:
        for record in self._records.values():
            if record.id == record_id:
                return record
        return None

    def list_by_area(self, prompt_area: str) -> list[PromptRecord]:
        records = [record for record in self._records.values() if record.prompt_area == prompt_area]
        return sorted(records, key=lambda record: record.prompt_key)

    def all(self) -> list[PromptRecord]:
        return sorted(self._records.values(), key=lambda record: (record.prompt_area, record.prompt_key))

    def __len__(self) -> int:
        return len(self._records)


def _metadata_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def _optional_local(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def load_prompt_file(path: Path) -> PromptRecord:
    post = frontmatter.load(str(path))
    meta = post.metadata
    try:
        return PromptRecord(
            id=str(meta.get("id") or path.stem),
            prompt_area=str(meta["prompt_area"]),
            prompt_key=str(meta["prompt_key"]),
            local_1=_optional_local(meta.get("local_1")),
            local_2=_optional_local(meta.get("local_2")),
            local_3=_optional_local(meta.get("local_3")),
            prompt_text=post.content.strip(),
            prompt_variables=_metadata_text(meta.get("prompt_variables")) or "[]",
            prompt_notes=_metadata_text(meta.get("prompt_notes")),
            next_prompt=_metadata_text(meta.get("next_prompt")) or None,
            created_at=_metadata_text(meta.get("created_at")),
            changed_at=_metadata_text(meta.get("changed_at")),
        )
    except KeyError as exc:
        raise ConfigError(f"Prompt file {path} is missing front matter field {exc.args[0]!r}.") from exc
    except ValidationError as exc:
        raise ConfigError(f"Invalid prompt file {path}: {exc}") from exc


def load_prompt_dir(roots: list[Path], store: InMemoryPromptStore | None = None) -> InMemoryPromptStore:
    """
    Load every *.md prompt file under `roots` into a store.
    Earlier roots win when two files define the same (area, key, locals).
    """
    store = store if store is not None else InMemoryPromptStore()
    for root in roots:
        if not root.exists():
            logger.warning("Prompt directory %s does not exist", root)
            continue
        for path in sorted(root.rglob("*.md")):
            record = load_prompt_file(path)
            if not store.add(record):
                logger.warning(
                    "Ignored duplicate prompt %s:%s %s in %s",
                    record.prompt_area,
                    record.prompt_key,
                    record.locals_key(),
                    path,
                )
    logger.info("Loaded %d prompt(s) from %s", len(store), [str(root) for root in roots])
    return store
