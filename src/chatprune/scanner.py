"""Conversation inventory.

Walks the storage root (one folder per workspace, one ``.jsonl`` transcript
per session) and builds a ``Conversation`` for each transcript. Records are
rebuilt on every scan; nothing is cached between runs.

Scan errors (unreadable directories, failing ``stat``) propagate: a partial
inventory would be a bad basis for deleting things.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from chatprune.output import NO_TITLE_LABEL, warn
from chatprune.transcript import extract_timestamp, extract_title, is_warmup_only
from chatprune.workspace import decode_workspace_name

TRANSCRIPT_SUFFIX = ".jsonl"
AGENT_PREFIX = "agent-"
WARMUP_TITLE = "[Warmup]"
DEFAULT_ACTIVE_WINDOW = 5 * 60  # seconds


def is_agent_name(stem: str) -> bool:
    """Agent (subagent) transcripts are named ``agent-<id>.jsonl``."""
    return stem.startswith(AGENT_PREFIX)


def iter_transcripts(folder: Path):
    """Yield transcript files directly inside a workspace folder."""
    for path in folder.iterdir():
        if path.suffix == TRANSCRIPT_SUFFIX and path.is_file():
            yield path


@dataclass(frozen=True)
class Conversation:
    """One transcript file found on disk."""

    path: Path
    session_id: str
    workspace_folder: Path
    workspace_path: str
    is_empty: bool
    is_active: bool
    title: str | None = None
    timestamp: datetime | None = None
    folder_path: Path | None = None

    @property
    def is_agent(self) -> bool:
        return is_agent_name(self.session_id)

    @property
    def is_warmup(self) -> bool:
        return self.title == WARMUP_TITLE


@dataclass(frozen=True)
class WorkspaceSummary:
    """Transcript counts for one workspace folder."""

    name: str
    path: str
    total: int
    agents: int

    @property
    def chats(self) -> int:
        return self.total - self.agents


def _read_content(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        warn(f"Cannot read {path}: {e}")
        return ""


def build_conversation(
    path: Path,
    workspace_folder: Path,
    workspace_path: str,
    *,
    now: float,
    active_window: float = DEFAULT_ACTIVE_WINDOW,
) -> Conversation:
    """Stat and parse one transcript into a Conversation.

    Raises:
        OSError: if the file's metadata cannot be read.
    """
    st = path.stat()
    is_empty = st.st_size == 0
    age = now - st.st_mtime
    is_active = 0 <= age < active_window

    session_id = path.stem
    is_agent = is_agent_name(session_id)

    title = None
    timestamp = None
    if not is_empty:
        content = _read_content(path)
        title = extract_title(content)
        timestamp = extract_timestamp(content)
        # Only agent files are relabelled; a warmup-only main chat stays untitled.
        if is_agent and is_warmup_only(content):
            title = WARMUP_TITLE

    folder = workspace_folder / session_id
    return Conversation(
        path=path,
        session_id=session_id,
        workspace_folder=workspace_folder,
        workspace_path=workspace_path,
        is_empty=is_empty,
        is_active=is_active,
        title=title,
        timestamp=timestamp,
        folder_path=folder if folder.is_dir() else None,
    )


def _matches_filter(name: str, decoded: str, workspace_filter: str | None) -> bool:
    if not workspace_filter:
        return True
    return workspace_filter in name or workspace_filter in decoded


def sort_tier(conv: Conversation) -> int:
    """0 = titled, 1 = untitled, 2 = empty."""
    if conv.is_empty:
        return 2
    if conv.title is None or conv.title == NO_TITLE_LABEL:
        return 1
    return 0


def sort_key(conv: Conversation) -> tuple:
    """Tier, then newest first (undated last), then path."""
    if conv.timestamp is None:
        return (sort_tier(conv), 1, 0.0, conv.path)
    return (sort_tier(conv), 0, -conv.timestamp.timestamp(), conv.path)


def sort_conversations(conversations: list[Conversation]) -> list[Conversation]:
    return sorted(conversations, key=sort_key)


def scan_conversations(
    projects_dir: Path,
    *,
    workspace_filter: str | None = None,
    include_agents: bool = False,
    now: float | None = None,
    active_window: float = DEFAULT_ACTIVE_WINDOW,
) -> list[Conversation]:
    """Scan every workspace under projects_dir and return sorted records.

    Args:
        projects_dir: Storage root holding one folder per workspace.
        workspace_filter: Case-sensitive substring matched against the
            encoded folder name or the decoded path.
        include_agents: Keep ``agent-*`` transcripts.
        now: Current time (epoch seconds) for the "active" heuristic.
        active_window: Seconds since last modification that count as active.

    Raises:
        OSError: if a directory listing or file stat fails.
    """
    if now is None:
        now = time.time()

    conversations = []
    for workspace_folder in projects_dir.iterdir():
        if not workspace_folder.is_dir():
            continue

        name = workspace_folder.name
        decoded = decode_workspace_name(name)
        if not _matches_filter(name, decoded, workspace_filter):
            continue

        for path in iter_transcripts(workspace_folder):
            if is_agent_name(path.stem) and not include_agents:
                continue
            conversations.append(
                build_conversation(
                    path,
                    workspace_folder,
                    decoded,
                    now=now,
                    active_window=active_window,
                )
            )

    return sort_conversations(conversations)


def list_workspaces(projects_dir: Path) -> list[WorkspaceSummary]:
    """Summarize each workspace folder, sorted by decoded path."""
    summaries = []
    for workspace_folder in projects_dir.iterdir():
        if not workspace_folder.is_dir():
            continue
        stems = [p.stem for p in iter_transcripts(workspace_folder)]
        summaries.append(
            WorkspaceSummary(
                name=workspace_folder.name,
                path=decode_workspace_name(workspace_folder.name),
                total=len(stems),
                agents=sum(1 for s in stems if is_agent_name(s)),
            )
        )
    return sorted(summaries, key=lambda w: (w.path, w.name))
