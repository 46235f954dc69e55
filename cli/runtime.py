"""Runtime boot helpers for Prompt Library CLI.

Updates:
  v0.1.1 - 2026-10-17 - Apply the configured log level to the basicConfig fallback.
  v0.1.0 - 2026-10-16 - Extract logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(logging_conf_path: Path | None, level: str = "INFO") -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (OSError, ValueError, KeyError) as exc:  # pragma: no cover - configuration fallback
            logging.getLogger("prompt_library.cli").warning(
                "Ignoring unusable logging config %s: %s", path, exc
            )
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


__all__ = ["DEFAULT_LOGGING_CONFIG", "LOG_FORMAT", "setup_logging"]
