"""Build, refresh, and validate prompt usage metadata.

Usage:
    >>> tracker = MetadataTracker()
    >>> metadata = tracker.create("gpt-4o", "Summarise the attached report")
    >>> tracker.validate(metadata)

Updates:
  v0.2.1 - 2026-10-19 - Reject non-string confidence values; read PromptMetadata.created.
  v0.2.0 - 2026-10-17 - Re-hydrate legacy metadata records lacking a token estimate.
  v0.1.0 - 2026-10-15 - Initial create/touch/validate helpers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, Final

from models.prompt_model import (
    Confidence,
    PromptMetadata,
    TokenEstimate,
    format_iso,
    is_number,
    parse_iso,
)

from .exceptions import (
    InvalidContent,
    InvalidModelName,
    InvalidTimestamp,
    MetadataInvalid,
    TimestampOrderingViolation,
)
from .token_estimator import estimate_tokens, looks_like_code

logger = logging.getLogger("prompt_library.metadata")

MAX_MODEL_NAME_LENGTH: Final[int] = 100
_CONFIDENCE_VALUES: Final[frozenset[str]] = frozenset(item.value for item in Confidence)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def check_model_name(name: Any) -> str:
    """Return the trimmed model name or raise :class:`InvalidModelName`."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidModelName("Model name must be a non-empty string")
    cleaned = name.strip()
    if len(cleaned) > MAX_MODEL_NAME_LENGTH:
        raise InvalidModelName(
            f"Model name exceeds {MAX_MODEL_NAME_LENGTH} character limit"
        )
    return cleaned


def check_timestamp(value: Any, field_name: str) -> datetime:
    """Parse a metadata timestamp or raise :class:`InvalidTimestamp`."""
    if not isinstance(value, str):
        raise InvalidTimestamp(f"Invalid {field_name}: not a string")
    try:
        return parse_iso(value)
    except ValueError as exc:
        raise InvalidTimestamp(f"Invalid {field_name}: {exc}") from exc


def _check_token_estimate(value: Any) -> None:
    if isinstance(value, TokenEstimate):
        value = value.to_record()
    if not isinstance(value, Mapping):
        raise MetadataInvalid("tokenEstimate missing")
    minimum = value.get("min")
    maximum = value.get("max")
    if not is_number(minimum) or int(minimum) != minimum or minimum < 0:
        raise MetadataInvalid("tokenEstimate.min must be a non-negative integer")
    if not is_number(maximum) or int(maximum) != maximum or maximum < minimum:
        raise MetadataInvalid("tokenEstimate.max must be an integer >= min")
    confidence = value.get("confidence")
    if not isinstance(confidence, str) or confidence not in _CONFIDENCE_VALUES:
        raise MetadataInvalid("tokenEstimate.confidence must be high, medium or low")


class MetadataTracker:
    """Create and maintain :class:`PromptMetadata` under an injectable clock."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or _utc_now

    def now_iso(self) -> str:
        """Return the tracker clock's current instant in wire format."""
        return format_iso(self._clock())

    def create(self, model: Any, content: Any) -> PromptMetadata:
        """Return fresh metadata for *content* produced with *model*."""
        cleaned_model = check_model_name(model)
        if not isinstance(content, str) or not content.strip():
            raise InvalidContent("Content must be a non-empty string")
        stamp = self.now_iso()
        return PromptMetadata(
            model=cleaned_model,
            created_at=stamp,
            updated_at=stamp,
            token_estimate=estimate_tokens(content, looks_like_code(content)),
        )

    def touch(self, metadata: PromptMetadata) -> PromptMetadata:
        """Return a copy of *metadata* with ``updated_at`` set to now."""
        try:
            created = metadata.created
        except ValueError as exc:
            raise InvalidTimestamp(f"Invalid createdAt: {exc}") from exc
        moment = self._clock()
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        updated_at = format_iso(moment)
        if parse_iso(updated_at) < created:
            raise TimestampOrderingViolation(
                "updatedAt cannot be earlier than createdAt"
            )
        return replace(metadata, updated_at=updated_at)

    def reestimate(self, metadata: PromptMetadata, content: str) -> PromptMetadata:
        """Return a copy of *metadata* with the estimate recomputed from *content*."""
        return replace(
            metadata,
            token_estimate=estimate_tokens(content, looks_like_code(content)),
        )

    def validate(self, metadata: PromptMetadata | Mapping[str, Any]) -> None:
        """Raise :class:`MetadataInvalid` when *metadata* breaks an invariant."""
        validate_metadata(metadata)

    def hydrate(self, record: Mapping[str, Any], content: str) -> dict[str, Any]:
        """Return *record* with a token estimate, recomputing it for legacy rows."""
        hydrated = dict(record)
        try:
            _check_token_estimate(hydrated.get("tokenEstimate"))
        except MetadataInvalid:
            logger.warning(
                "Recomputing token estimate for legacy metadata (model=%s)",
                hydrated.get("model"),
            )
            hydrated["tokenEstimate"] = estimate_tokens(
                content, looks_like_code(content)
            ).to_record()
        return hydrated


def validate_metadata(metadata: PromptMetadata | Mapping[str, Any]) -> None:
    """Re-check every metadata invariant, raising :class:`MetadataInvalid`."""
    record: Mapping[str, Any]
    if isinstance(metadata, PromptMetadata):
        record = metadata.to_record()
    elif isinstance(metadata, Mapping):
        record = metadata
    else:
        raise MetadataInvalid("metadata must be an object")
    try:
        model = check_model_name(record.get("model"))
    except InvalidModelName as exc:
        raise MetadataInvalid(str(exc)) from exc
    if model != record.get("model"):
        raise MetadataInvalid("model must not carry surrounding whitespace")
    try:
        created = check_timestamp(record.get("createdAt"), "createdAt")
        updated = check_timestamp(record.get("updatedAt"), "updatedAt")
    except InvalidTimestamp as exc:
        raise MetadataInvalid(str(exc)) from exc
    if updated < created:
        raise MetadataInvalid("updatedAt precedes createdAt")
    _check_token_estimate(record.get("tokenEstimate"))


__all__ = [
    "MAX_MODEL_NAME_LENGTH",
    "MetadataTracker",
    "check_model_name",
    "check_timestamp",
    "validate_metadata",
]
