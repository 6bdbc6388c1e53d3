"""Common formatting utilities for CLI and selector output."""

import sys
from datetime import datetime

EMPTY_LABEL = "[Empty]"
NO_TITLE_LABEL = "[No title]"

MISSING_TIME = "---"


def warn(message: str) -> None:
    """Print a warning message to stderr."""
    print(f"Warning: {message}", file=sys.stderr)


def fmt_title(conv) -> str:
    """Display title for a conversation: its title, or a bracketed label."""
    if conv.is_empty:
        return EMPTY_LABEL
    return conv.title or NO_TITLE_LABEL


def fmt_workspace(path: str) -> str:
    """Last segment of a decoded workspace path ("/home/u/proj" -> "proj")."""
    return path.rsplit("/", 1)[-1]


def fmt_local_time(ts: datetime | None) -> str:
    """Format an aware timestamp in local time, or a placeholder if missing."""
    if ts is None:
        return MISSING_TIME
    return ts.astimezone().strftime("%Y-%m-%d %H:%M:%S")

