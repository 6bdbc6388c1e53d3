"""Output helpers shared by the CLI and the interactive selector."""

from chatprune.output.common import (
    EMPTY_LABEL,
    NO_TITLE_LABEL,
    fmt_local_time,
    fmt_title,
    fmt_workspace,
    warn,
)

__all__ = [
    # Labels
    "EMPTY_LABEL",
    "NO_TITLE_LABEL",
    # Formatting
    "fmt_title",
    "fmt_workspace",
    "fmt_local_time",
    # Diagnostics
    "warn",
]
