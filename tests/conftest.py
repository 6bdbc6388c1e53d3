"""Shared fixtures: a throwaway transcript storage tree."""

import json
import os

import pytest

NOW = 1_700_000_000.0


def write_transcript(path, records=(), *, raw: str | None = None, mtime: float = NOW - 3600):
    """Write records as JSONL (or raw text) and pin the modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if raw is None:
        raw = "".join(json.dumps(r) + "\n" for r in records)
    path.write_text(raw)
    os.utime(path, (mtime, mtime))
    return path


def user(text, *, timestamp=None, session_id=None):
    """A user record with string content."""
    record = {"type": "user", "message": {"role": "user", "content": text}}
    if timestamp:
        record["timestamp"] = timestamp
    if session_id:
        record["sessionId"] = session_id
    return record


@pytest.fixture
def projects(tmp_path):
    """Empty storage root."""
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def workspace(projects):
    """One workspace folder for /home/dev/app."""
    folder = projects / "-home-dev-app"
    folder.mkdir()
    return folder
