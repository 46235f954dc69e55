"""Merge or replace the live library with an imported snapshot.

The engine applies a decoded :class:`LibrarySnapshot` to a
:class:`LibraryStore`. ``merge`` detects prompts whose id already exists and
asks a caller-supplied resolver whether to keep the existing prompt or
overwrite it; notes of overwritten and new prompts are merged by ``noteId``
with the incoming side winning. Any failure after the rollback point has been
captured restores the store and raises :class:`MergeFailed`.

The engine is not reentrant: callers must serialise ``merge``, ``replace`` and
exports against the same store.

Usage:
    >>> engine = ReconciliationEngine(store)
    >>> result = engine.import_bytes(payload, ImportMode.MERGE, keep_existing)
    >>> result.summary()
    {'added': 2, 'overwritten': 0, 'kept': 1, 'droppedGroups': 0}

Updates:
  v0.3.0 - 2026-10-18 - Roll back replace imports when persisting fails.
  v0.2.0 - 2026-10-17 - Add import_bytes entry point combining decode and apply.
  v0.1.0 - 2026-10-16 - Initial merge/replace with rollback.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import MergeFailed
from .snapshot_codec import decode

if TYPE_CHECKING:
    from models.prompt_model import Prompt
    from models.prompt_note import PromptNote
    from models.snapshot_model import LibrarySnapshot

    from .library_store import LibraryStore, RollbackPoint

logger = logging.getLogger("prompt_library.reconciliation")


class ConflictDecision(str, Enum):
    """Outcome of resolving a duplicate prompt id during a merge."""

    KEEP = "keep"
    OVERWRITE = "overwrite"


class ImportMode(str, Enum):
    """How an imported snapshot is applied to the live store."""

    MERGE = "merge"
    REPLACE = "replace"


ConflictResolver = Callable[["Prompt", "Prompt"], ConflictDecision]


def keep_existing(existing: Prompt, incoming: Prompt) -> ConflictDecision:
    """Resolver that always keeps the live prompt."""
    return ConflictDecision.KEEP


def overwrite_existing(existing: Prompt, incoming: Prompt) -> ConflictDecision:
    """Resolver that always takes the incoming prompt."""
    return ConflictDecision.OVERWRITE


def _string_list_factory() -> list[str]:
    return []


@dataclass(slots=True)
class MergeResult:
    """Summary of an applied import."""

    mode: ImportMode
    added: int = 0
    overwritten: int = 0
    kept: int = 0
    dropped_groups: list[str] = field(default_factory=_string_list_factory)

    def summary(self) -> dict[str, int]:
        """Return aggregate counts for downstream reporting."""
        return {
            "added": self.added,
            "overwritten": self.overwritten,
            "kept": self.kept,
            "droppedGroups": len(self.dropped_groups),
        }


def merge_notes(
    existing: Iterable[PromptNote],
    incoming: Iterable[PromptNote],
) -> list[PromptNote]:
    """Union two note collections by ``note_id``; incoming notes win collisions.

    The result carries no ordering guarantee; display code sorts by
    ``created_at`` descending.
    """
    merged: dict[str, PromptNote] = {}
    for note in existing:
        merged[note.note_id] = note
    for note in incoming:
        merged[note.note_id] = copy.deepcopy(note)
    return list(merged.values())


class ReconciliationEngine:
    """Apply imported snapshots to a :class:`LibraryStore` all-or-nothing."""

    def __init__(self, store: LibraryStore) -> None:
        self._store = store

    @property
    def store(self) -> LibraryStore:
        return self._store

    def import_bytes(
        self,
        data: bytes | str,
        mode: ImportMode = ImportMode.MERGE,
        decide: ConflictResolver = keep_existing,
    ) -> MergeResult:
        """Decode *data* and apply it using *mode*.

        ``ParseError`` and ``SnapshotInvalid`` are raised before the store is
        touched.
        """
        snapshot = decode(data)
        if ImportMode(mode) is ImportMode.REPLACE:
            return self.replace(snapshot)
        return self.merge(snapshot, decide)

    def replace(self, snapshot: LibrarySnapshot) -> MergeResult:
        """Overwrite the live prompts and notes with *snapshot*."""
        point = self._store.capture()
        try:
            self._store.prompts = copy.deepcopy(snapshot.prompts)
            self._store.notes = copy.deepcopy(snapshot.notes)
            self._store.persist()
        except Exception as exc:
            raise self._rollback(point, exc) from exc
        result = MergeResult(
            mode=ImportMode.REPLACE,
            added=len(snapshot.prompts),
            dropped_groups=list(snapshot.dropped_groups),
        )
        logger.info("Replaced library with %d prompt(s)", result.added)
        return result

    def merge(self, snapshot: LibrarySnapshot, decide: ConflictResolver) -> MergeResult:
        """Merge *snapshot* into the live store.

        *decide* is called at most once per duplicate prompt id. Its answers are
        applied together with the rest of the merge: if any step fails, the
        store is restored to its state before the call.
        """
        point = self._store.capture()
        result = MergeResult(
            mode=ImportMode.MERGE,
            dropped_groups=list(snapshot.dropped_groups),
        )
        try:
            prompts = copy.deepcopy(self._store.prompts)
            notes = copy.deepcopy(self._store.notes)
            positions = {prompt.id: index for index, prompt in enumerate(prompts)}

            duplicates = [p for p in snapshot.prompts if p.id in positions]
            new_prompts = [p for p in snapshot.prompts if p.id not in positions]
            logger.debug(
                "Merging %d new and %d duplicate prompt(s)", len(new_prompts), len(duplicates)
            )

            for incoming in duplicates:
                index = positions[incoming.id]
                decision = ConflictDecision(decide(prompts[index], incoming))
                logger.debug("Conflict on %s resolved as %s", incoming.id, decision.value)
                if decision is ConflictDecision.KEEP:
                    result.kept += 1
                    continue
                prompts[index] = copy.deepcopy(incoming)
                self._merge_group(notes, incoming.id, snapshot.notes.get(incoming.id, []))
                result.overwritten += 1

            for incoming in new_prompts:
                prompts.append(copy.deepcopy(incoming))
                self._merge_group(notes, incoming.id, snapshot.notes.get(incoming.id, []))
                result.added += 1

            self._store.prompts = prompts
            self._store.notes = notes
            self._store.persist()
        except Exception as exc:
            raise self._rollback(point, exc) from exc

        logger.info(
            "Merge complete: added=%d overwritten=%d kept=%d dropped_groups=%d",
            result.added,
            result.overwritten,
            result.kept,
            len(result.dropped_groups),
        )
        return result

    @staticmethod
    def _merge_group(
        notes: dict[str, list[PromptNote]],
        prompt_id: str,
        incoming: list[PromptNote],
    ) -> None:
        if not incoming and prompt_id not in notes:
            return
        notes[prompt_id] = merge_notes(notes.get(prompt_id, []), incoming)

    def _rollback(self, point: RollbackPoint, exc: Exception) -> MergeFailed:
        logger.error("Import failed (%s); restoring pre-import state", exc)
        try:
            self._store.restore(point)
        except Exception as restore_exc:
            logger.exception("Rollback after failed import did not complete")
            return MergeFailed(
                f"Import failed and rollback did not complete: {exc}",
                rolled_back=False,
                rollback_error=restore_exc,
            )
        return MergeFailed(f"Import failed and was rolled back: {exc}", rolled_back=True)


def describe_result(result: MergeResult) -> str:
    """Return a one-line human summary of *result*."""
    if result.mode is ImportMode.MERGE:
        text = (
            f"Import complete (merge): added {result.added}, "
            f"overwritten {result.overwritten}"
        )
    else:
        text = f"Import complete (replace): {result.added} prompt(s)"
    dropped = len(result.dropped_groups)
    if dropped:
        suffix = "s" if dropped > 1 else ""
        text += f", dropped {dropped} orphan note group{suffix}"
    return text


__all__ = [
    "ConflictDecision",
    "ConflictResolver",
    "ImportMode",
    "MergeResult",
    "ReconciliationEngine",
    "describe_result",
    "keep_existing",
    "merge_notes",
    "overwrite_existing",
]
