"""Pytest configuration for shared test fixtures and environment hooks.

Updates:
  v0.1.0 - 2026-10-16 - Keep developer .env files out of settings resolution during tests.
"""

import os
from typing import Any


def pytest_configure(config: Any) -> None:
    """Point the dotenv loader at an empty path so local .env files are ignored."""
    os.environ["PROMPT_LIBRARY_ENV_FILE"] = ""
