"""Printable summaries for Prompt Library configuration.

Updates:
  v0.1.1 - 2026-10-18 - Show conflict policy and default import mode.
  v0.1.0 - 2026-10-16 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .utils import describe_path

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import LibrarySettings


def print_settings_summary(settings: LibrarySettings) -> None:
    """Emit a readable summary of the resolved configuration."""
    config_source = os.getenv("PROMPT_LIBRARY_CONFIG_JSON") or "config/config.json (optional)"
    lines = [
        "Prompt Library configuration",
        "----------------------------",
        f"Config file: {config_source}",
        "Storage: "
        + describe_path(settings.storage_path, expect_directory=False, allow_missing_file=True),
        "Export directory: "
        + describe_path(settings.export_dir, expect_directory=True, allow_missing_file=True),
        f"Conflict policy: {settings.conflict_policy}",
        f"Default import mode: {settings.default_import_mode}",
        f"Log level: {settings.log_level}",
    ]
    print("\n".join(lines))


__all__ = ["print_settings_summary"]
