"""Shared CLI utility functions for Prompt Library commands.

Updates:
  v0.1.0 - 2026-10-16 - Extract stdout logging, path, and display helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger

    from models.prompt_model import Prompt, TokenEstimate
else:  # pragma: no cover - runtime placeholders for type-only imports
    Logger = Prompt = TokenEstimate = Any


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def describe_path(
    path_value: object,
    *,
    expect_directory: bool,
    allow_missing_file: bool = False,
) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    try:
        path = Path(path_value) if path_value is not None else None
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    return message


def format_rating(value: int | None) -> str:
    """Return ``n/5`` or ``unrated``."""
    if value is None:
        return "unrated"
    return f"{value}/5"


def format_estimate(estimate: TokenEstimate | None) -> str:
    """Return display text for a token estimate."""
    if estimate is None:
        return "n/a"
    if estimate.min_tokens == estimate.max_tokens:
        span = f"~{estimate.max_tokens}"
    else:
        span = f"{estimate.min_tokens}-{estimate.max_tokens}"
    return f"{span} tokens ({estimate.confidence.value})"


def format_timestamp_ms(value: int) -> str:
    """Render epoch milliseconds as a UTC timestamp to the second."""
    moment = datetime.fromtimestamp(value / 1000, tz=UTC)
    return moment.isoformat(timespec="seconds")


def describe_prompt(prompt: Prompt) -> str:
    """Return a one-line listing entry for *prompt*."""
    metadata = prompt.metadata
    model = metadata.model if metadata is not None else "-"
    estimate = format_estimate(metadata.token_estimate if metadata is not None else None)
    return (
        f"{prompt.id}  {prompt.title}  [{model}]  "
        f"rating:{format_rating(prompt.rating)}  {estimate}"
    )


__all__ = [
    "describe_path",
    "describe_prompt",
    "format_estimate",
    "format_rating",
    "format_timestamp_ms",
    "print_and_log",
]
