"""Prompt note data model definitions.

Updates: v0.2.0 - 2026-10-16 - Key notes by owning prompt id and use epoch-millisecond stamps.
Updates: v0.1.0 - 2026-10-15 - Add PromptNote dataclass for simple note storage.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .prompt_model import is_number, now_ms


@dataclass(slots=True)
class PromptNote:
    """Free-text annotation owned by exactly one prompt."""

    note_id: str
    prompt_id: str
    text: str
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp, never moving it before ``created_at``."""
        self.updated_at = max(now_ms(), self.created_at)

    def to_record(self) -> dict[str, Any]:
        """Return a mapping suitable for JSON persistence."""
        return {
            "noteId": self.note_id,
            "promptId": self.prompt_id,
            "text": self.text,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptNote:
        """Hydrate a PromptNote from a stored mapping."""
        created_raw = data.get("createdAt")
        updated_raw = data.get("updatedAt")
        created_at = int(created_raw) if is_number(created_raw) else now_ms()
        updated_at = int(updated_raw) if is_number(updated_raw) else created_at
        return cls(
            note_id=str(data.get("noteId") or ""),
            prompt_id=str(data.get("promptId") or ""),
            text=str(data.get("text") or "").strip(),
            created_at=created_at,
            updated_at=max(updated_at, created_at),
        )


__all__ = ["PromptNote"]
