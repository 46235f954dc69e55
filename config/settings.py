"""Settings management utilities for Prompt Library configuration.

Updates:
  v0.2.0 - 2026-10-18 - Add conflict policy and default import mode settings.
  v0.1.1 - 2026-10-17 - Load .env values through python-dotenv without touching os.environ.
  v0.1.0 - 2026-10-16 - Initial storage/export settings with JSON and env sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"
_CONFIG_JSON_ENV = "PROMPT_LIBRARY_CONFIG_JSON"
_ENV_FILE_ENV = "PROMPT_LIBRARY_ENV_FILE"

DEFAULT_STORAGE_PATH = Path("data") / "prompt_library.db"
DEFAULT_EXPORT_DIR = Path("exports")
DEFAULT_CONFLICT_POLICY = "ask"
DEFAULT_IMPORT_MODE = "merge"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

# Field name -> accepted environment keys (checked with and without the prefix).
_ENV_ALIASES: dict[str, list[str]] = {
    "storage_path": ["STORAGE_PATH", "DB_PATH", "storage_path", "db_path"],
    "export_dir": ["EXPORT_DIR", "export_dir"],
    "conflict_policy": ["CONFLICT_POLICY", "conflict_policy"],
    "default_import_mode": ["DEFAULT_IMPORT_MODE", "IMPORT_MODE", "default_import_mode"],
    "log_level": ["LOG_LEVEL", "log_level"],
}

logger = logging.getLogger("prompt_library.settings")


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv(_ENV_FILE_ENV)
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Prompt Library configuration cannot be loaded or validated."""


class LibrarySettings(BaseSettings):
    """Application configuration sourced from keyword overrides, JSON, or environment."""

    storage_path: Path = Field(
        default=DEFAULT_STORAGE_PATH,
        description="SQLite file backing the key-value store.",
    )
    export_dir: Path = Field(
        default=DEFAULT_EXPORT_DIR,
        description="Directory receiving prompt-library-export-*.json files.",
    )
    conflict_policy: Literal["ask", "keep", "overwrite"] = Field(
        default=DEFAULT_CONFLICT_POLICY,
        description=(
            "How duplicate prompt ids are resolved during merge imports "
            "('ask' prompts per duplicate)."
        ),
    )
    default_import_mode: Literal["merge", "replace"] = Field(
        default=DEFAULT_IMPORT_MODE,
        description="Import mode used when the CLI does not specify one.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Root log level applied when no logging config file is present.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPT_LIBRARY_",
            "case_sensitive": False,
            "populate_by_name": True,
            "validate_default": True,
        },
    )

    @field_validator("storage_path", "export_dir", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("a filesystem path is required")
        path = Path(str(value).strip()).expanduser()
        return path.resolve()

    @field_validator("conflict_policy", "default_import_mode", mode="before")
    def _normalise_choice(cls, value: Any) -> Any:
        """Accept choices regardless of case or surrounding whitespace."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    def _normalise_log_level(cls, value: Any) -> str:
        """Upper-case log level names and reject unknown ones."""
        level = str(value or DEFAULT_LOG_LEVEL).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(storage_path="...")).
            2. JSON configuration file.
            3. Environment variables / ``.env`` entries and their aliases.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    found = None
                    for candidate in (f"{prefix}{key}", f"{prefix}{key.upper()}"):
                        found = _lookup(candidate)
                        if found is not None:
                            break
                    if found is not None:
                        data[field] = found
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv(_CONFIG_JSON_ENV)
            if explicit_path:
                path = Path(explicit_path).expanduser()
                if not path.exists():
                    raise SettingsError(f"Configuration file not found: {path}")
            else:
                path = (Path("config") / "config.json").expanduser()
                if not path.exists():
                    return {}
            try:
                raw_contents = path.read_text(encoding="utf-8")
            except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                raise SettingsError(f"Unable to read configuration file: {path}") from exc
            try:
                data = json.loads(raw_contents)
            except json.JSONDecodeError as exc:
                raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
            if not isinstance(data, dict):
                raise SettingsError(f"Configuration file {path} must contain a JSON object")
            mapping_data = cast("Mapping[object, Any]", data)
            data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
            mapped: dict[str, Any] = {}
            if "db_path" in data_dict and "storage_path" not in data_dict:
                mapped["storage_path"] = data_dict["db_path"]
            for key in _ENV_ALIASES:
                if key in data_dict:
                    mapped[key] = data_dict[key]
            unknown = sorted(set(data_dict) - set(_ENV_ALIASES) - {"db_path"})
            if unknown:
                logger.warning(
                    "Ignoring unknown key(s) %s in configuration file %s",
                    ", ".join(unknown),
                    path,
                )
            return mapped

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> LibrarySettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return LibrarySettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid Prompt Library configuration") from exc


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
