"""Configuration helpers for Prompt Library.

Updates: v0.1.0 - 2026-10-16 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_CONFLICT_POLICY,
    DEFAULT_EXPORT_DIR,
    DEFAULT_IMPORT_MODE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_STORAGE_PATH,
    LibrarySettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_CONFLICT_POLICY",
    "DEFAULT_EXPORT_DIR",
    "DEFAULT_IMPORT_MODE",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_STORAGE_PATH",
    "LibrarySettings",
    "SettingsError",
    "load_settings",
]
