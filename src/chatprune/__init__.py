"""chatprune - inventory and clean up Claude Code conversation transcripts.

Public API re-exports for programmatic access.
"""

from chatprune.cascade import DeleteSummary, DeletionError, delete_conversation, delete_many
from chatprune.scanner import (
    Conversation,
    WorkspaceSummary,
    list_workspaces,
    scan_conversations,
)
from chatprune.transcript import (
    extract_timestamp,
    extract_title,
    is_warmup_only,
)
from chatprune.workspace import decode_workspace_name, encode_workspace_path

__all__ = [
    # scanning
    "Conversation",
    "WorkspaceSummary",
    "scan_conversations",
    "list_workspaces",
    # parsing
    "extract_title",
    "extract_timestamp",
    "is_warmup_only",
    "decode_workspace_name",
    "encode_workspace_path",
    # deletion
    "DeletionError",
    "DeleteSummary",
    "delete_conversation",
    "delete_many",
]
