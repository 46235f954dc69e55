"""Core service layer for Prompt Library.

Updates:
  v0.3.0 - 2026-10-18 - Export the PromptLibrary facade and reconciliation helpers.
  v0.2.0 - 2026-10-17 - Export snapshot codec and schema validators.
  v0.1.0 - 2026-10-15 - Surface token estimation and metadata tracking.
"""

from models.prompt_note import PromptNote

from .exceptions import (
    ExportAborted,
    InvalidContent,
    InvalidModelName,
    InvalidNote,
    InvalidPrompt,
    InvalidTimestamp,
    MergeFailed,
    MetadataError,
    MetadataInvalid,
    NoteNotFoundError,
    ParseError,
    PromptLibraryError,
    PromptNotFoundError,
    ReconciliationError,
    SnapshotInvalid,
    SnapshotRejected,
    TimestampOrderingViolation,
    WriteError,
)
from .library_store import NOTES_KEY, PROMPTS_KEY, LibraryStore, RollbackPoint
from .metadata_tracker import MetadataTracker, validate_metadata
from .prompt_library import PromptLibrary
from .reconciliation import (
    ConflictDecision,
    ConflictResolver,
    ImportMode,
    MergeResult,
    ReconciliationEngine,
    describe_result,
    keep_existing,
    merge_notes,
    overwrite_existing,
)
from .repository import InMemoryKeyValueStore, KeyValueStore, SQLiteKeyValueStore
from .schema_validator import validate_note, validate_prompt, validate_snapshot
from .snapshot_codec import compute_stats, decode, dumps, encode, export_filename, write_export
from .token_estimator import estimate_tokens, looks_like_code

__all__ = [
    "ConflictDecision",
    "ConflictResolver",
    "ExportAborted",
    "ImportMode",
    "InMemoryKeyValueStore",
    "InvalidContent",
    "InvalidModelName",
    "InvalidNote",
    "InvalidPrompt",
    "InvalidTimestamp",
    "KeyValueStore",
    "LibraryStore",
    "MergeFailed",
    "MergeResult",
    "MetadataError",
    "MetadataInvalid",
    "MetadataTracker",
    "NOTES_KEY",
    "NoteNotFoundError",
    "PROMPTS_KEY",
    "ParseError",
    "PromptLibrary",
    "PromptLibraryError",
    "PromptNote",
    "PromptNotFoundError",
    "ReconciliationEngine",
    "ReconciliationError",
    "RollbackPoint",
    "SQLiteKeyValueStore",
    "SnapshotInvalid",
    "SnapshotRejected",
    "TimestampOrderingViolation",
    "WriteError",
    "compute_stats",
    "decode",
    "describe_result",
    "dumps",
    "encode",
    "estimate_tokens",
    "export_filename",
    "keep_existing",
    "looks_like_code",
    "merge_notes",
    "overwrite_existing",
    "validate_metadata",
    "validate_note",
    "validate_prompt",
    "validate_snapshot",
    "write_export",
]
