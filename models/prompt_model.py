"""Prompt data model definitions.

Records are persisted and exported with the camelCase keys used by the
browser storage format (``createdAt``, ``tokenEstimate`` ...); the dataclasses
expose snake_case attributes and convert at the ``to_record``/``from_record``
boundary.

Updates: v0.3.1 - 2026-10-19 - Drop the unused PromptMetadata.updated accessor.
Updates: v0.3.0 - 2026-10-17 - Tolerate legacy ratings and timestamps in from_record.
Updates: v0.2.0 - 2026-10-16 - Add PromptMetadata and TokenEstimate dataclasses.
Updates: v0.1.0 - 2026-10-15 - Initial Prompt schema with serialization helpers.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

MAX_RATING = 5
ISO_INSTANT_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
_ISO_INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def now_ms(clock: datetime | None = None) -> int:
    """Return *clock* (or now) as integer milliseconds since the Unix epoch."""
    moment = clock or _utc_now()
    return int(moment.timestamp() * 1000)


def format_iso(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:mm:ss.sssZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(text: str) -> datetime:
    """Parse a millisecond ISO-8601 UTC instant, raising ValueError otherwise."""
    if not ISO_INSTANT_PATTERN.match(text):
        raise ValueError(f"{text!r} is not a millisecond ISO-8601 UTC instant")
    return datetime.strptime(text, _ISO_INSTANT_FORMAT).replace(tzinfo=UTC)


def is_number(value: Any) -> bool:
    """Return True for finite int/float values (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def normalize_rating(value: Any) -> int | None:
    """Coerce stored rating values into ``None`` or an integer within 0..5."""
    if value is None:
        return None
    if not is_number(value):
        return 0
    if value < 0 or value > MAX_RATING:
        return 0
    return int(math.floor(value + 0.5))


class Confidence(str, Enum):
    """Confidence band attached to a token estimate."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(slots=True, frozen=True)
class TokenEstimate:
    """Estimated token footprint of a piece of text."""

    min_tokens: int
    max_tokens: int
    confidence: Confidence

    def to_record(self) -> dict[str, Any]:
        """Return the wire mapping (``min``/``max``/``confidence``)."""
        return {
            "min": self.min_tokens,
            "max": self.max_tokens,
            "confidence": self.confidence.value,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> TokenEstimate:
        """Hydrate an estimate, raising ValueError when the mapping is unusable."""
        minimum = data.get("min")
        maximum = data.get("max")
        if not is_number(minimum) or not is_number(maximum):
            raise ValueError("token estimate bounds must be numeric")
        return cls(
            min_tokens=int(minimum),
            max_tokens=int(maximum),
            confidence=Confidence(str(data.get("confidence"))),
        )


@dataclass(slots=True)
class PromptMetadata:
    """Usage metadata attached to a prompt.

    Timestamps are kept in their wire form so that records read from storage
    or an import file survive untouched until validation decides on them.
    """

    model: str
    created_at: str
    updated_at: str
    token_estimate: TokenEstimate

    @property
    def created(self) -> datetime:
        """Return ``created_at`` as an aware datetime."""
        return parse_iso(self.created_at)

    def to_record(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "tokenEstimate": self.token_estimate.to_record(),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptMetadata:
        raw_estimate = data.get("tokenEstimate")
        if not isinstance(raw_estimate, Mapping):
            raise ValueError("metadata is missing its token estimate")
        return cls(
            model=str(data.get("model") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
            token_estimate=TokenEstimate.from_record(raw_estimate),
        )


@dataclass(slots=True)
class Prompt:
    """Dataclass representation of a stored prompt."""

    id: str
    title: str
    content: str
    created_at: int
    rating: int | None = None
    metadata: PromptMetadata | None = None

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping in storage/export shape."""
        record: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "rating": self.rating,
        }
        if self.metadata is not None:
            record["metadata"] = self.metadata.to_record()
        return record

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Hydrate a Prompt from a stored or imported mapping."""
        prompt_id = data.get("id")
        if not isinstance(prompt_id, str) or not prompt_id.strip():
            raise ValueError("prompt records require a non-empty string id")
        created_raw = data.get("createdAt")
        created_at = int(created_raw) if is_number(created_raw) else now_ms()
        raw_metadata = data.get("metadata")
        metadata = (
            PromptMetadata.from_record(raw_metadata)
            if isinstance(raw_metadata, Mapping)
            else None
        )
        return cls(
            id=prompt_id,
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            created_at=created_at,
            rating=normalize_rating(data.get("rating")),
            metadata=metadata,
        )


__all__ = [
    "Confidence",
    "ISO_INSTANT_PATTERN",
    "MAX_RATING",
    "Prompt",
    "PromptMetadata",
    "TokenEstimate",
    "format_iso",
    "is_number",
    "normalize_rating",
    "now_ms",
    "parse_iso",
]
