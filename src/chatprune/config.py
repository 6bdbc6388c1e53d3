"""User configuration backed by a TOML file.

The file is optional; a missing or broken file means defaults everywhere.
Keys are addressed with dotted paths such as ``storage.projects_dir``.
"""

from __future__ import annotations

import tomlkit
import tomlkit.exceptions
from tomlkit import TOMLDocument

from chatprune.output import warn
from chatprune.paths import config_file

DEFAULT_ACTIVE_WINDOW_MINUTES = 5


def load_config() -> TOMLDocument:
    """Parse the config file, returning an empty document on any problem."""
    path = config_file()
    if not path.exists():
        return tomlkit.document()

    try:
        return tomlkit.parse(path.read_text())
    except tomlkit.exceptions.TOMLKitError as e:
        warn(f"Invalid TOML in {path}: {e}")
    except OSError as e:
        warn(f"Cannot read {path}: {e}")
    return tomlkit.document()


def get_config(key: str, doc: TOMLDocument | None = None):
    """Look up a dotted key. Returns None when any segment is missing."""
    node = load_config() if doc is None else doc
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    # tomlkit items wrap plain values
    return node.unwrap() if hasattr(node, "unwrap") else node


def configured_projects_dir(doc: TOMLDocument | None = None) -> str | None:
    """Storage root from ``storage.projects_dir``, if set."""
    value = get_config("storage.projects_dir", doc)
    return str(value) if value else None


def active_window_seconds(doc: TOMLDocument | None = None) -> float:
    """Recency window for the "active" flag, in seconds."""
    value = get_config("scan.active_window_minutes", doc)
    if value is None:
        return DEFAULT_ACTIVE_WINDOW_MINUTES * 60
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        warn(f"Ignoring invalid scan.active_window_minutes: {value!r}")
        return DEFAULT_ACTIVE_WINDOW_MINUTES * 60
    return float(value) * 60
