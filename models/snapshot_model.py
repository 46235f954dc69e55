"""Library snapshot data model definitions.

Updates: v0.1.0 - 2026-10-16 - Add LibrarySnapshot and SnapshotStats dataclasses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .prompt_model import Prompt
from .prompt_note import PromptNote

SNAPSHOT_VERSION = 1


def _prompt_list_factory() -> list[Prompt]:
    return []


def _note_map_factory() -> dict[str, list[PromptNote]]:
    return {}


def _string_list_factory() -> list[str]:
    return []


@dataclass(slots=True, frozen=True)
class SnapshotStats:
    """Aggregate figures stamped onto every export."""

    total_prompts: int = 0
    average_rating: float = 0.0
    most_used_model: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "totalPrompts": self.total_prompts,
            "averageRating": self.average_rating,
            "mostUsedModel": self.most_used_model,
        }


@dataclass(slots=True)
class LibrarySnapshot:
    """Versioned, self-contained copy of the library used for export and import.

    ``dropped_groups`` lists note-group keys removed during decoding because no
    prompt in the snapshot owns them; it is reported to callers and never
    serialised.
    """

    version: int
    exported_at: str
    stats: SnapshotStats = field(default_factory=SnapshotStats)
    prompts: list[Prompt] = field(default_factory=_prompt_list_factory)
    notes: dict[str, list[PromptNote]] = field(default_factory=_note_map_factory)
    dropped_groups: list[str] = field(default_factory=_string_list_factory)

    def prompt_ids(self) -> list[str]:
        """Return prompt identifiers in snapshot order."""
        return [prompt.id for prompt in self.prompts]

    def to_record(self) -> dict[str, Any]:
        """Return the JSON export mapping."""
        return {
            "version": self.version,
            "exportedAt": self.exported_at,
            "stats": self.stats.to_record(),
            "prompts": [prompt.to_record() for prompt in self.prompts],
            "notes": {
                prompt_id: [note.to_record() for note in group]
                for prompt_id, group in self.notes.items()
            },
        }


__all__ = ["LibrarySnapshot", "SNAPSHOT_VERSION", "SnapshotStats"]
