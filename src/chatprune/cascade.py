"""Deleting conversations together with everything that hangs off them.

Agent transcripts point back at their parent through the ``sessionId`` on
their first line; the parent has no forward reference. Deleting a parent
therefore re-scans its workspace folder for agents that name it.

Nothing here is transactional: a failure half way leaves whatever was
already removed removed.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from chatprune.output import warn
from chatprune.scanner import Conversation, is_agent_name, iter_transcripts
from chatprune.transcript import read_first_session_id


class DeletionError(Exception):
    """Removing a transcript or its sidecar folder failed."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to delete {path}: {cause}")


def _delete_agents_of(conv: Conversation) -> int:
    """Remove agent transcripts whose first line names conv's session."""
    try:
        candidates = [p for p in iter_transcripts(conv.workspace_folder) if is_agent_name(p.stem)]
    except OSError as e:
        warn(f"Cannot list {conv.workspace_folder} for agent files: {e}")
        return 0

    deleted = 0
    for path in sorted(candidates):
        try:
            if read_first_session_id(path) != conv.session_id:
                continue
            path.unlink()
        except OSError:
            continue
        deleted += 1
        sidecar = conv.workspace_folder / path.stem
        if sidecar.is_dir():
            shutil.rmtree(sidecar, ignore_errors=True)
    return deleted


def delete_conversation(conv: Conversation) -> int:
    """Delete a conversation, its sidecar folder, and its agent transcripts.

    Returns the number of transcript files removed (1 + matching agents).

    Raises:
        DeletionError: if the transcript itself or its sidecar folder could
            not be removed. Agent cleanup failures are skipped.
    """
    try:
        conv.path.unlink()
    except OSError as e:
        raise DeletionError(conv.path, e) from e

    if conv.folder_path is not None and conv.folder_path.exists():
        try:
            shutil.rmtree(conv.folder_path)
        except OSError as e:
            raise DeletionError(conv.folder_path, e) from e

    deleted = 1
    if not conv.is_agent:
        deleted += _delete_agents_of(conv)
    return deleted


@dataclass
class DeleteSummary:
    """Outcome of deleting a batch of conversations."""

    files: int = 0
    conversations: int = 0
    failures: list[tuple[Conversation, DeletionError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def delete_many(
    conversations: Iterable[Conversation],
    *,
    delete: Callable[[Conversation], int] = delete_conversation,
    on_result: Callable[[Conversation, int | None, DeletionError | None], None] | None = None,
) -> DeleteSummary:
    """Delete each conversation, carrying on past individual failures.

    Args:
        conversations: Records to delete, in order.
        delete: Per-record deletion (the cascade by default).
        on_result: Called after each record with (conv, files, None) on
            success or (conv, None, error) on failure.
    """
    summary = DeleteSummary()
    for conv in conversations:
        try:
            files = delete(conv)
        except DeletionError as e:
            summary.failures.append((conv, e))
            if on_result:
                on_result(conv, None, e)
            continue
        summary.files += files
        summary.conversations += 1
        if on_result:
            on_result(conv, files, None)
    return summary
