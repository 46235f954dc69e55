"""Prompt Library facade used by the CLI and other front ends.

:class:`PromptLibrary` offers the direct create/read/update/delete operations
on prompts, ratings, and notes, plus export and import entry points that
delegate to the snapshot codec and reconciliation engine. Every mutating call
persists the store before returning; when that write fails the in-memory
store is put back the way it was and the error propagates.

Updates:
  v0.3.1 - 2026-10-19 - Undo in-memory edits when persisting a facade mutation fails.
  v0.3.0 - 2026-10-18 - Add export/import helpers delegating to the codec and engine.
  v0.2.0 - 2026-10-17 - Add note CRUD with per-prompt note identifiers.
  v0.1.0 - 2026-10-16 - Initial prompt CRUD and rating helpers.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import TYPE_CHECKING

from models.prompt_model import MAX_RATING, Prompt, now_ms
from models.prompt_note import PromptNote

from .exceptions import (
    InvalidNote,
    InvalidPrompt,
    NoteNotFoundError,
    PromptLibraryError,
    PromptNotFoundError,
)
from .library_store import LibraryStore
from .metadata_tracker import MetadataTracker
from .reconciliation import (
    ConflictResolver,
    ImportMode,
    MergeResult,
    ReconciliationEngine,
    keep_existing,
)
from .repository.kv_store import SQLiteKeyValueStore
from .snapshot_codec import write_export

if TYPE_CHECKING:
    from pathlib import Path

    from .repository.kv_store import KeyValueStore

logger = logging.getLogger("prompt_library.library")


class PromptLibrary:
    """High-level prompt library API bound to a :class:`LibraryStore`."""

    def __init__(
        self,
        store: LibraryStore,
        *,
        tracker: MetadataTracker | None = None,
    ) -> None:
        self._store = store
        self._tracker = tracker or MetadataTracker()
        self._engine = ReconciliationEngine(store)

    @classmethod
    def open(
        cls,
        backend: KeyValueStore | None = None,
        *,
        db_path: str | Path | None = None,
        tracker: MetadataTracker | None = None,
    ) -> PromptLibrary:
        """Load a library from *backend* or a SQLite file at *db_path*."""
        if backend is None:
            backend = SQLiteKeyValueStore(db_path or "data/prompt_library.db")
        store = LibraryStore.open(backend, tracker=tracker)
        return cls(store, tracker=tracker)

    @property
    def store(self) -> LibraryStore:
        return self._store

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def list_prompts(self) -> list[Prompt]:
        """Return prompts in insertion order."""
        return list(self._store.prompts)

    def get_prompt(self, prompt_id: str) -> Prompt:
        prompt = self._store.find_prompt(prompt_id)
        if prompt is None:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found")
        return prompt

    def add_prompt(self, title: str, content: str, model: str) -> Prompt:
        """Create, store, and return a new prompt."""
        clean_title = (title or "").strip()
        if not clean_title:
            raise InvalidPrompt("Prompt title must not be empty")
        clean_content = (content or "").strip()
        metadata = self._tracker.create(model, clean_content)
        prompt = Prompt(
            id=str(uuid.uuid4()),
            title=clean_title,
            content=clean_content,
            created_at=now_ms(),
            rating=None,
            metadata=metadata,
        )
        with self._committing():
            self._store.prompts.append(prompt)
        logger.info("Added prompt %s (%s)", prompt.id, metadata.model)
        return prompt

    def update_prompt(
        self,
        prompt_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> Prompt:
        """Edit a prompt's title and/or content, refreshing its metadata."""
        prompt = self.get_prompt(prompt_id)
        new_title = prompt.title
        new_content = prompt.content
        if title is not None:
            new_title = title.strip()
            if not new_title:
                raise InvalidPrompt("Prompt title must not be empty")
        if content is not None:
            new_content = content.strip()
            if not new_content:
                raise InvalidPrompt("Prompt content must not be empty")
        metadata = prompt.metadata
        if metadata is not None:
            metadata = self._tracker.touch(metadata)
            if content is not None:
                metadata = self._tracker.reestimate(metadata, new_content)
        with self._committing():
            prompt.title = new_title
            prompt.content = new_content
            prompt.metadata = metadata
        return prompt

    def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt together with its note collection."""
        index = self._store.index_of(prompt_id)
        if index is None:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found")
        with self._committing():
            del self._store.prompts[index]
            self._store.notes.pop(prompt_id, None)
        logger.info("Deleted prompt %s", prompt_id)

    def set_rating(self, prompt_id: str, value: int | None) -> Prompt:
        """Set a 0..5 rating (clamped); ``None`` marks the prompt unrated."""
        prompt = self.get_prompt(prompt_id)
        rating = None if value is None else max(0, min(MAX_RATING, int(value)))
        if prompt.rating != rating:
            with self._committing():
                prompt.rating = rating
        return prompt

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def list_notes(self, prompt_id: str) -> list[PromptNote]:
        """Return a prompt's notes, newest first."""
        self.get_prompt(prompt_id)
        notes = self._store.notes_for(prompt_id)
        return sorted(notes, key=lambda note: note.created_at, reverse=True)

    def add_note(self, prompt_id: str, text: str) -> PromptNote:
        """Attach a new note to a prompt."""
        self.get_prompt(prompt_id)
        clean_text = (text or "").strip()
        if not clean_text:
            raise InvalidNote("Note cannot be empty")
        stamp = now_ms()
        existing_ids = {note.note_id for note in self._store.notes_for(prompt_id)}
        note_id = f"{prompt_id}-{stamp}"
        suffix = 1
        while note_id in existing_ids:
            note_id = f"{prompt_id}-{stamp}-{suffix}"
            suffix += 1
        note = PromptNote(
            note_id=note_id,
            prompt_id=prompt_id,
            text=clean_text,
            created_at=stamp,
            updated_at=stamp,
        )
        with self._committing():
            self._store.notes.setdefault(prompt_id, []).append(note)
        return note

    def update_note(self, prompt_id: str, note_id: str, text: str) -> PromptNote:
        """Replace a note's text and refresh its ``updated_at`` stamp."""
        clean_text = (text or "").strip()
        if not clean_text:
            raise InvalidNote("Note cannot be empty")
        notes = self._notes_or_raise(prompt_id)
        for index, note in enumerate(notes):
            if note.note_id == note_id:
                updated = replace(note, text=clean_text)
                updated.touch()
                with self._committing():
                    notes[index] = updated
                return updated
        raise NoteNotFoundError(f"Note {note_id} not found for prompt {prompt_id}")

    def delete_note(self, prompt_id: str, note_id: str) -> None:
        notes = self._notes_or_raise(prompt_id)
        remaining = [note for note in notes if note.note_id != note_id]
        if len(remaining) == len(notes):
            raise NoteNotFoundError(f"Note {note_id} not found for prompt {prompt_id}")
        with self._committing():
            self._store.notes[prompt_id] = remaining

    def _notes_or_raise(self, prompt_id: str) -> list[PromptNote]:
        self.get_prompt(prompt_id)
        return self._store.notes.get(prompt_id, [])

    @contextmanager
    def _committing(self) -> Iterator[None]:
        """Persist the edits made inside the block, undoing them if the write fails."""
        point = self._store.capture()
        try:
            yield
            self._store.persist()
        except Exception as exc:
            logger.error("Write failed (%s); restoring previous library state", exc)
            try:
                self._store.restore(point)
            except PromptLibraryError:
                logger.exception("Storage could not be restored after failed write")
            raise

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_to(self, directory: Path) -> Path:
        """Write an export snapshot into *directory* and return the file path."""
        return write_export(self._store, directory)

    def import_from(
        self,
        path: Path,
        mode: ImportMode = ImportMode.MERGE,
        decide: ConflictResolver = keep_existing,
    ) -> MergeResult:
        """Read an export file and merge or replace the live library with it."""
        data = path.expanduser().read_bytes()
        return self._engine.import_bytes(data, mode, decide)


__all__ = ["PromptLibrary"]
