"""Common exception classes for the core package.

All exceptions ultimately inherit from :class:`PromptLibraryError`, allowing
callers to catch a single base class for any library failure while still
distinguishing individual error categories when needed.

The hierarchy mirrors the three outcomes callers must tell apart after an
import: ``SnapshotRejected`` (nothing changed), ``MergeFailed`` with
``rolled_back=True`` (partially applied, then restored) and a returned result
(applied as requested).

Updates:
  v0.3.0 - 2026-10-17 - Add prompt and note CRUD errors for the library facade.
  v0.2.0 - 2026-10-16 - Add snapshot and reconciliation exception hierarchy.
  v0.1.0 - 2026-10-15 - Created module with metadata and storage errors.
"""

from __future__ import annotations


class PromptLibraryError(Exception):
    """Base exception for Prompt Library failures."""


# ---------------------------------------------------------------------------
# Metadata errors
# ---------------------------------------------------------------------------


class MetadataError(PromptLibraryError):
    """Base class for prompt metadata failures."""


class InvalidModelName(MetadataError):
    """Raised when a model name is empty or longer than 100 characters."""


class InvalidContent(MetadataError):
    """Raised when prompt content is not a non-empty string."""


class InvalidTimestamp(MetadataError):
    """Raised when a metadata timestamp is not a millisecond ISO-8601 UTC instant."""


class TimestampOrderingViolation(MetadataError):
    """Raised when ``updatedAt`` would precede ``createdAt``."""


class MetadataInvalid(MetadataError):
    """Raised when externally supplied metadata breaks a metadata invariant."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid metadata: {reason}")
        self.reason = reason


# ---------------------------------------------------------------------------
# Snapshot errors (detected before any mutation)
# ---------------------------------------------------------------------------


class SnapshotRejected(PromptLibraryError):
    """Base class for import payloads rejected before the store is touched."""


class ParseError(SnapshotRejected):
    """Raised when an import payload is not well-formed JSON."""


class SnapshotInvalid(SnapshotRejected):
    """Raised when a parsed snapshot violates the library schema."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid snapshot: {reason}")
        self.reason = reason


class ExportAborted(PromptLibraryError):
    """Raised when the live store holds a prompt that fails validation."""

    def __init__(self, prompt_id: str | None, reason: str = "invalid prompt") -> None:
        label = prompt_id if prompt_id else "<unknown>"
        super().__init__(f"Export aborted: {reason} ({label})")
        self.prompt_id = prompt_id
        self.reason = reason


# ---------------------------------------------------------------------------
# Reconciliation and storage errors
# ---------------------------------------------------------------------------


class ReconciliationError(PromptLibraryError):
    """Base class for failures while applying an imported snapshot."""


class MergeFailed(ReconciliationError):
    """Raised when applying a snapshot fails after the rollback point was taken.

    ``rolled_back`` is ``True`` when the pre-import state was restored and
    ``False`` when the restore itself failed (see ``rollback_error``).
    """

    def __init__(
        self,
        message: str,
        *,
        rolled_back: bool,
        rollback_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.rolled_back = rolled_back
        self.rollback_error = rollback_error


class WriteError(PromptLibraryError):
    """Raised when the key-value store rejects a write."""

    def __init__(self, key: str, message: str | None = None) -> None:
        super().__init__(message or f"Unable to write storage key {key!r}")
        self.key = key


# ---------------------------------------------------------------------------
# Library CRUD errors
# ---------------------------------------------------------------------------


class PromptNotFoundError(PromptLibraryError):
    """Raised when a prompt cannot be located in the live store."""


class NoteNotFoundError(PromptLibraryError):
    """Raised when a note cannot be located in a prompt's collection."""


class InvalidPrompt(PromptLibraryError):
    """Raised when prompt fields supplied by the UI are unusable."""


class InvalidNote(PromptLibraryError):
    """Raised when note text is empty after trimming."""


__all__ = [
    "ExportAborted",
    "InvalidContent",
    "InvalidModelName",
    "InvalidNote",
    "InvalidPrompt",
    "InvalidTimestamp",
    "MergeFailed",
    "MetadataError",
    "MetadataInvalid",
    "NoteNotFoundError",
    "ParseError",
    "PromptLibraryError",
    "PromptNotFoundError",
    "ReconciliationError",
    "SnapshotInvalid",
    "SnapshotRejected",
    "TimestampOrderingViolation",
    "WriteError",
]
