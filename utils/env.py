"""Environment helper utilities.

Loads a ``.env`` file from the project root so that engine settings
(``CI_*`` variables, ``OPENAI_API_KEY``, ``SERP_API_KEY``) become available
via ``os.getenv`` before ``EngineConfig.from_env`` reads them.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

__all__ = ["env_flag", "load_project_dotenv"]


def _find_project_root(start: Path | None = None) -> Path:
    """Traverse upwards until we find a directory that contains `pyproject.toml`."""
    current = start or Path(__file__).resolve().parent
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        if current.parent == current:
            break
        current = current.parent
    return Path(__file__).resolve().parent


def load_project_dotenv(start: Path | None = None) -> bool:
    """Load the project-level `.env` without overriding variables already set. Returns True if loaded."""
    dotenv_path = _find_project_root(start) / ".env"
    if not dotenv_path.exists():
        return False
    return load_dotenv(dotenv_path=dotenv_path, override=False)


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on" are truthy)."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}
