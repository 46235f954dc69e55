"""Structural validators for prompts, notes, and library snapshots.

``validate_prompt`` and ``validate_note`` return booleans so that callers can
filter bulk data; ``validate_snapshot`` raises :class:`SnapshotInvalid` because
a snapshot is either accepted whole or not at all.

Updates:
  v0.3.0 - 2026-10-19 - Require integer ratings within 0..5; never raise from validate_prompt.
  v0.2.0 - 2026-10-17 - Reject duplicate prompt and note identifiers inside a snapshot.
  v0.1.0 - 2026-10-16 - Initial prompt/note/snapshot validators.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, cast

from models.prompt_model import MAX_RATING, Prompt, is_number
from models.prompt_note import PromptNote
from models.snapshot_model import SNAPSHOT_VERSION, LibrarySnapshot

from .exceptions import MetadataInvalid, SnapshotInvalid
from .metadata_tracker import validate_metadata

logger = logging.getLogger("prompt_library.validation")


def validate_prompt(candidate: Any) -> bool:
    """Return True when *candidate* has the stored prompt shape."""
    if not isinstance(candidate, Mapping):
        return False
    record = cast("Mapping[str, Any]", candidate)
    prompt_id = record.get("id")
    if not isinstance(prompt_id, str) or not prompt_id.strip():
        return False
    if not isinstance(record.get("title"), str):
        return False
    if not isinstance(record.get("content"), str):
        return False
    if not is_number(record.get("createdAt")):
        return False
    rating = record.get("rating")
    if rating is not None:
        if not is_number(rating) or int(rating) != rating or not 0 <= rating <= MAX_RATING:
            logger.debug(
                "Prompt %s carries rating %r outside 0..%d", prompt_id, rating, MAX_RATING
            )
            return False
    metadata = record.get("metadata")
    if metadata is not None:
        try:
            validate_metadata(metadata)
        except MetadataInvalid as exc:
            logger.debug("Prompt %s carries invalid metadata: %s", prompt_id, exc.reason)
            return False
        except (TypeError, ValueError) as exc:
            logger.debug("Prompt %s carries malformed metadata: %s", prompt_id, exc)
            return False
    return True


def validate_note(candidate: Any, expected_prompt_id: str) -> bool:
    """Return True when *candidate* is a note owned by *expected_prompt_id*."""
    if not isinstance(candidate, Mapping):
        return False
    record = cast("Mapping[str, Any]", candidate)
    note_id = record.get("noteId")
    if not isinstance(note_id, str) or not note_id:
        return False
    text = record.get("text")
    if not isinstance(text, str) or not text.strip():
        return False
    if record.get("promptId") != expected_prompt_id:
        return False
    created = record.get("createdAt")
    updated = record.get("updatedAt")
    if created is not None and not is_number(created):
        return False
    if updated is not None and not is_number(updated):
        return False
    if created is not None and updated is not None and updated < created:
        return False
    return True


def _validate_prompts(raw_prompts: Any) -> list[Prompt]:
    if not isinstance(raw_prompts, list):
        raise SnapshotInvalid("prompts must be an array")
    prompts: list[Prompt] = []
    seen: set[str] = set()
    for index, raw in enumerate(cast("list[Any]", raw_prompts)):
        if not validate_prompt(raw):
            raise SnapshotInvalid(f"invalid prompt at index {index}")
        prompt = Prompt.from_record(raw)
        if prompt.id in seen:
            raise SnapshotInvalid(f"duplicate prompt id {prompt.id!r}")
        seen.add(prompt.id)
        prompts.append(prompt)
    return prompts


def _validate_notes(
    raw_notes: Any,
    prompt_ids: set[str],
) -> tuple[dict[str, list[PromptNote]], list[str]]:
    if not isinstance(raw_notes, Mapping):
        raise SnapshotInvalid("notes must be an object")
    notes: dict[str, list[PromptNote]] = {}
    dropped: list[str] = []
    for key, group in cast("Mapping[str, Any]", raw_notes).items():
        if key not in prompt_ids:
            dropped.append(key)
            continue
        if not isinstance(group, list):
            raise SnapshotInvalid(f"notes for prompt {key!r} must be an array")
        collection: list[PromptNote] = []
        seen: set[str] = set()
        for raw in cast("list[Any]", group):
            if not validate_note(raw, key):
                raise SnapshotInvalid(f"invalid note under prompt {key!r}")
            note = PromptNote.from_record(raw)
            if note.note_id in seen:
                raise SnapshotInvalid(f"duplicate note id {note.note_id!r} under {key!r}")
            seen.add(note.note_id)
            collection.append(note)
        notes[key] = collection
    return notes, dropped


def validate_snapshot(candidate: Any) -> LibrarySnapshot:
    """Validate a parsed snapshot and return it with orphan note groups removed.

    Any invalid prompt or note aborts the whole snapshot. Note groups keyed by
    an id absent from ``prompts`` are dropped and listed in
    ``LibrarySnapshot.dropped_groups``.
    """
    if not isinstance(candidate, Mapping):
        raise SnapshotInvalid("root must be an object")
    payload = cast("Mapping[str, Any]", candidate)
    version = payload.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise SnapshotInvalid("missing version")
    if version != SNAPSHOT_VERSION:
        raise SnapshotInvalid(f"unsupported version {version}")
    exported_at = payload.get("exportedAt", "")
    if not isinstance(exported_at, str):
        raise SnapshotInvalid("exportedAt must be a string")

    prompts = _validate_prompts(payload.get("prompts"))
    notes, dropped = _validate_notes(payload.get("notes"), {p.id for p in prompts})
    if dropped:
        logger.warning(
            "Dropped %d orphan note group(s): %s", len(dropped), ", ".join(dropped)
        )
    return LibrarySnapshot(
        version=version,
        exported_at=exported_at,
        prompts=prompts,
        notes=notes,
        dropped_groups=dropped,
    )


__all__ = ["validate_note", "validate_prompt", "validate_snapshot"]
