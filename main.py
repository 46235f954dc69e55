"""Application entry point for Prompt Library.

Updates:
  v0.3.0 - 2026-10-18 - Map reconciliation failures to dedicated exit codes.
  v0.2.0 - 2026-10-17 - Add --storage override and settings-driven command defaults.
  v0.1.0 - 2026-10-16 - Wire settings, logging, and CLI command dispatch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cli.commands import (
    COMMAND_SPECS,
    EXIT_FAILURE,
    EXIT_SETTINGS,
    EXIT_STORAGE,
    apply_settings_defaults,
    exit_code_for,
)
from cli.parser import build_parser
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import PromptLibrary, PromptLibraryError, SQLiteKeyValueStore

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import LibrarySettings


def _open_library(
    settings: LibrarySettings,
    logger: logging.Logger,
) -> PromptLibrary | None:
    try:
        backend = SQLiteKeyValueStore(settings.storage_path)
        return PromptLibrary.open(backend)
    except PromptLibraryError as exc:
        logger.error("Failed to open library at %s: %s", settings.storage_path, exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, storage, and CLI commands."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger("prompt_library.cli")

    overrides: dict[str, object] = {}
    if args.storage is not None:
        overrides["storage_path"] = args.storage
    try:
        settings = load_settings(**overrides)
    except SettingsError as exc:
        setup_logging(args.logging_config)
        cause = exc.__cause__ or exc
        logger.error("Failed to load settings: %s", cause)
        return EXIT_SETTINGS

    setup_logging(args.logging_config, settings.log_level)
    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS.get(command)
    if spec is None:
        parser.print_help()
        return EXIT_FAILURE

    apply_settings_defaults(args, settings)
    library = None
    if spec.requires_library:
        library = _open_library(settings, logger)
        if library is None:
            return EXIT_STORAGE

    try:
        return spec.handler(library, args, logger)
    except PromptLibraryError as exc:
        logger.error("%s failed: %s", command, exc)
        return exit_code_for(exc)
    except OSError as exc:
        logger.error("%s failed: %s", command, exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
