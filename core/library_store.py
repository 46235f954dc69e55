"""Explicit handle over the persisted prompt library.

The live prompt collection and note map are held in memory on a
:class:`LibraryStore` and written back to a :class:`KeyValueStore` through
:meth:`LibraryStore.persist`. Core operations receive the store explicitly
instead of re-reading storage on every call.

Usage:
    >>> store = LibraryStore.open(SQLiteKeyValueStore("data/prompt_library.db"))
    >>> store.prompt_ids()
    [...]

Updates:
  v0.3.1 - 2026-10-19 - Drop unreadable and duplicate stored notes and duplicate prompts on load.
  v0.3.0 - 2026-10-18 - Capture raw key bytes so rollbacks restore storage exactly.
  v0.2.0 - 2026-10-17 - Hydrate legacy prompt rows through the metadata tracker.
  v0.1.0 - 2026-10-16 - Initial load/persist pair over the key-value store.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, cast

from models.prompt_model import Prompt
from models.prompt_note import PromptNote

from .metadata_tracker import MetadataTracker
from .repository.base import json_dumps_bytes, json_loads_bytes
from .schema_validator import validate_note

if TYPE_CHECKING:
    from .repository.kv_store import KeyValueStore

logger = logging.getLogger("prompt_library.store")

PROMPTS_KEY: Final[str] = "promptLibrary"
NOTES_KEY: Final[str] = "promptNotes"


@dataclass(slots=True, frozen=True)
class RollbackPoint:
    """Plain captured copy of the store taken before a multi-step change."""

    prompts: list[Prompt]
    notes: dict[str, list[PromptNote]]
    raw: dict[str, bytes | None]


class LibraryStore:
    """In-memory prompt collection and note map bound to a storage backend."""

    def __init__(
        self,
        backend: KeyValueStore,
        *,
        tracker: MetadataTracker | None = None,
    ) -> None:
        self._backend = backend
        self._tracker = tracker or MetadataTracker()
        self.prompts: list[Prompt] = []
        self.notes: dict[str, list[PromptNote]] = {}

    @classmethod
    def open(
        cls,
        backend: KeyValueStore,
        *,
        tracker: MetadataTracker | None = None,
    ) -> LibraryStore:
        """Return a store bound to *backend* with its contents loaded."""
        store = cls(backend, tracker=tracker)
        store.load()
        return store

    @property
    def backend(self) -> KeyValueStore:
        return self._backend

    # ------------------------------------------------------------------
    # Boundary: load / persist
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read both storage keys, tolerating missing or legacy data."""
        self.prompts = self._load_prompts(json_loads_bytes(self._backend.get(PROMPTS_KEY)))
        self.notes = self._load_notes(json_loads_bytes(self._backend.get(NOTES_KEY)))
        logger.debug(
            "Loaded %d prompt(s) and %d note group(s)", len(self.prompts), len(self.notes)
        )

    def persist(self) -> None:
        """Write prompts and notes back to storage as one logical write.

        Orphan note groups are pruned first so they are never persisted.
        """
        live_ids = set(self.prompt_ids())
        orphans = [key for key in self.notes if key not in live_ids]
        for key in orphans:
            logger.warning("Pruning orphan note group for missing prompt %s", key)
            del self.notes[key]
        self._backend.set_many(
            [
                (PROMPTS_KEY, self.encode_prompts()),
                (NOTES_KEY, self.encode_notes()),
            ]
        )

    def encode_prompts(self) -> bytes:
        return json_dumps_bytes([prompt.to_record() for prompt in self.prompts])

    def encode_notes(self) -> bytes:
        return json_dumps_bytes(
            {
                prompt_id: [note.to_record() for note in group]
                for prompt_id, group in self.notes.items()
            }
        )

    # ------------------------------------------------------------------
    # Rollback support
    # ------------------------------------------------------------------

    def capture(self) -> RollbackPoint:
        """Return a rollback point holding the current state and raw storage bytes."""
        return RollbackPoint(
            prompts=copy.deepcopy(self.prompts),
            notes=copy.deepcopy(self.notes),
            raw={
                PROMPTS_KEY: self._backend.get(PROMPTS_KEY),
                NOTES_KEY: self._backend.get(NOTES_KEY),
            },
        )

    def restore(self, point: RollbackPoint) -> None:
        """Restore *point* in memory and write its raw bytes back to storage."""
        self.prompts = copy.deepcopy(point.prompts)
        self.notes = copy.deepcopy(point.notes)
        present = [(key, value) for key, value in point.raw.items() if value is not None]
        self._backend.set_many(present)
        for key, value in point.raw.items():
            if value is None:
                self._backend.delete(key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def prompt_ids(self) -> list[str]:
        return [prompt.id for prompt in self.prompts]

    def index_of(self, prompt_id: str) -> int | None:
        for index, prompt in enumerate(self.prompts):
            if prompt.id == prompt_id:
                return index
        return None

    def find_prompt(self, prompt_id: str) -> Prompt | None:
        index = self.index_of(prompt_id)
        return None if index is None else self.prompts[index]

    def notes_for(self, prompt_id: str) -> list[PromptNote]:
        return self.notes.get(prompt_id, [])

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def _load_prompts(self, payload: Any) -> list[Prompt]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning("Stored prompt collection is not a list; starting empty")
            return []
        prompts: list[Prompt] = []
        seen: set[str] = set()
        for entry in cast("list[Any]", payload):
            if not isinstance(entry, Mapping):
                logger.warning("Skipping stored prompt that is not an object")
                continue
            record = dict(cast("Mapping[str, Any]", entry))
            metadata = record.get("metadata")
            if isinstance(metadata, Mapping):
                record["metadata"] = self._tracker.hydrate(
                    cast("Mapping[str, Any]", metadata),
                    str(record.get("content") or ""),
                )
            try:
                prompt = Prompt.from_record(record)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable stored prompt: %s", exc)
                continue
            if prompt.id in seen:
                logger.warning("Skipping duplicate stored prompt %s", prompt.id)
                continue
            seen.add(prompt.id)
            prompts.append(prompt)
        return prompts

    def _load_notes(self, payload: Any) -> dict[str, list[PromptNote]]:
        if payload is None:
            return {}
        if not isinstance(payload, Mapping):
            logger.warning("Stored note map is not an object; starting empty")
            return {}
        notes: dict[str, list[PromptNote]] = {}
        for key, group in cast("Mapping[str, Any]", payload).items():
            if not isinstance(group, list):
                logger.warning("Skipping note group %s that is not a list", key)
                continue
            collection: list[PromptNote] = []
            seen: set[str] = set()
            for entry in cast("list[Any]", group):
                if not isinstance(entry, Mapping):
                    logger.warning("Skipping stored note under %s that is not an object", key)
                    continue
                note = PromptNote.from_record(cast("Mapping[str, Any]", entry))
                note.prompt_id = str(key)
                if not validate_note(note.to_record(), note.prompt_id):
                    logger.warning("Skipping unreadable stored note under %s", key)
                    continue
                if note.note_id in seen:
                    logger.warning(
                        "Skipping duplicate stored note %s under %s", note.note_id, key
                    )
                    continue
                seen.add(note.note_id)
                collection.append(note)
            notes[str(key)] = collection
        return notes


__all__ = ["LibraryStore", "NOTES_KEY", "PROMPTS_KEY", "RollbackPoint"]
