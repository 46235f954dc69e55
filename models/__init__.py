"""Data models for Prompt Library.

Updates: v0.2.0 - 2026-10-16 - Export LibrarySnapshot and SnapshotStats dataclasses.
Updates: v0.1.0 - 2026-10-15 - Export Prompt, PromptMetadata, TokenEstimate and PromptNote.
"""

from .prompt_model import Confidence, Prompt, PromptMetadata, TokenEstimate
from .prompt_note import PromptNote
from .snapshot_model import SNAPSHOT_VERSION, LibrarySnapshot, SnapshotStats

__all__ = [
    "Confidence",
    "LibrarySnapshot",
    "Prompt",
    "PromptMetadata",
    "PromptNote",
    "SNAPSHOT_VERSION",
    "SnapshotStats",
    "TokenEstimate",
]
