"""Encode the live library into export snapshots and decode them back.

Updates:
  v0.2.1 - 2026-10-19 - Validate note groups on export and drop the unused MIME constant.
  v0.2.0 - 2026-10-18 - Add export file naming and write helper.
  v0.1.0 - 2026-10-16 - Initial encode/decode with aggregate statistics.
"""

from __future__ import annotations

import copy
import json
import logging
from collections import Counter
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Final

from models.prompt_model import format_iso
from models.snapshot_model import SNAPSHOT_VERSION, LibrarySnapshot, SnapshotStats

from .exceptions import ExportAborted, ParseError
from .schema_validator import validate_note, validate_prompt, validate_snapshot

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .library_store import LibraryStore

logger = logging.getLogger("prompt_library.codec")

EXPORT_FILENAME_PREFIX: Final[str] = "prompt-library-export-"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def compute_stats(prompts: Sequence[Prompt]) -> SnapshotStats:
    """Return aggregate statistics for *prompts*.

    Unrated prompts count as zero towards the average. Ties for the most used
    model go to the model encountered first.
    """
    total = len(prompts)
    rating_sum = sum(prompt.rating or 0 for prompt in prompts)
    average = round(rating_sum / total, 2) if total else 0.0
    models: Counter[str] = Counter()
    for prompt in prompts:
        if prompt.metadata is None:
            continue
        model = prompt.metadata.model.strip()
        if model:
            models[model] += 1
    most_common = models.most_common(1)
    return SnapshotStats(
        total_prompts=total,
        average_rating=float(average),
        most_used_model=most_common[0][0] if most_common else None,
    )


def encode(
    store: LibraryStore,
    *,
    clock: Callable[[], datetime] | None = None,
) -> LibrarySnapshot:
    """Return a validated snapshot of *store*.

    Raises :class:`ExportAborted` when any live prompt or note fails validation.
    """
    prompts = copy.deepcopy(store.prompts)
    live_ids = {prompt.id for prompt in prompts}
    notes = {
        prompt_id: copy.deepcopy(group)
        for prompt_id, group in store.notes.items()
        if prompt_id in live_ids
    }
    skipped = len(store.notes) - len(notes)
    if skipped:
        logger.warning("Excluded %d orphan note group(s) from export", skipped)
    seen_prompts: set[str] = set()
    for prompt in prompts:
        if prompt.id in seen_prompts or not validate_prompt(prompt.to_record()):
            logger.error("Invalid prompt %s detected; aborting export", prompt.id)
            raise ExportAborted(prompt.id)
        seen_prompts.add(prompt.id)
    for prompt_id, group in notes.items():
        seen: set[str] = set()
        for note in group:
            if note.note_id in seen or not validate_note(note.to_record(), prompt_id):
                logger.error(
                    "Invalid note %s under prompt %s; aborting export",
                    note.note_id,
                    prompt_id,
                )
                raise ExportAborted(prompt_id, "invalid note")
            seen.add(note.note_id)
    moment = (clock or _utc_now)()
    return LibrarySnapshot(
        version=SNAPSHOT_VERSION,
        exported_at=format_iso(moment),
        stats=compute_stats(prompts),
        prompts=prompts,
        notes=notes,
    )


def dumps(snapshot: LibrarySnapshot) -> bytes:
    """Serialise *snapshot* to indented UTF-8 JSON."""
    return json.dumps(snapshot.to_record(), ensure_ascii=False, indent=2).encode("utf-8")


def decode(data: bytes | str) -> LibrarySnapshot:
    """Parse and validate a serialised snapshot.

    Raises :class:`ParseError` for malformed input and :class:`SnapshotInvalid`
    for schema violations. Statistics are recomputed from the accepted prompts.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        payload: object = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc
    snapshot = validate_snapshot(payload)
    snapshot.stats = compute_stats(snapshot.prompts)
    return snapshot


def export_filename(moment: datetime | None = None) -> str:
    """Return ``prompt-library-export-<timestamp>.json`` with ``:`` and ``.`` dashed."""
    stamp = format_iso(moment or _utc_now()).replace(":", "-").replace(".", "-")
    return f"{EXPORT_FILENAME_PREFIX}{stamp}.json"


def write_export(
    store: LibraryStore,
    directory: Path,
    *,
    clock: Callable[[], datetime] | None = None,
) -> Path:
    """Encode *store* and write the export file into *directory*."""
    moment = (clock or _utc_now)()
    snapshot = encode(store, clock=lambda: moment)
    resolved_dir = directory.expanduser()
    resolved_dir.mkdir(parents=True, exist_ok=True)
    target = resolved_dir / export_filename(moment)
    target.write_bytes(dumps(snapshot))
    logger.info(
        "Exported %d prompt(s) and %d note group(s) to %s",
        snapshot.stats.total_prompts,
        len(snapshot.notes),
        target,
    )
    return target


__all__ = [
    "compute_stats",
    "decode",
    "dumps",
    "encode",
    "export_filename",
    "write_export",
]
