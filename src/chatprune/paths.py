"""Filesystem locations for chatprune.

Follows XDG Base Directory Specification for our own files:
- XDG_CONFIG_HOME (~/.config) - configuration files

The transcripts themselves live where the assistant writes them
(~/.claude/projects), which can be overridden by config or CLI flag.
"""

import os
from pathlib import Path

APP_NAME = "chatprune"

DEFAULT_PROJECTS_DIR = "~/.claude/projects"


class ProjectsDirNotFoundError(Exception):
    """The transcript storage root does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Claude projects directory not found at: {path}")


def _get_xdg_path(env_var: str, default: str) -> Path:
    """Get XDG path from environment or use default."""
    return Path(os.environ.get(env_var, default)).expanduser()


def config_dir() -> Path:
    """Return the config directory (~/.config/chatprune)."""
    base = _get_xdg_path("XDG_CONFIG_HOME", "~/.config")
    return base / APP_NAME


def config_file() -> Path:
    """Return the config file path (~/.config/chatprune/config.toml)."""
    return config_dir() / "config.toml"


def projects_dir(override: str | Path | None = None) -> Path:
    """Return the transcript storage root, which must already exist.

    Raises:
        ProjectsDirNotFoundError: if the directory is missing.
    """
    path = Path(override or DEFAULT_PROJECTS_DIR).expanduser()
    if not path.is_dir():
        raise ProjectsDirNotFoundError(path)
    return path
