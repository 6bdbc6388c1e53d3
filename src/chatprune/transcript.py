"""Transcript parsing.

A transcript is line-delimited JSON, one record per line. Only a handful of
fields matter here::

    {"type": "user", "message": {"content": "..."}, "timestamp": "...",
     "sessionId": "..."}

Parsing is deliberately forgiving: a line that is not valid JSON, not an
object, or carries a known field of the wrong type is skipped as if it were
absent. Nothing in this module raises on bad content.

Each extractor walks the whole text on its own; transcripts are small and
keeping them independent keeps them easy to test. They all share
``is_qualifying_text`` so title and warmup classification never disagree.
"""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

USER_TYPE = "user"
WARMUP_TEXT = "Warmup"
IDE_TAG_PREFIX = "<ide_"
TITLE_MAX_CHARS = 50


@dataclass(frozen=True)
class TranscriptRecord:
    """The fields of one transcript line we care about."""

    entry_type: str | None = None
    content: object = None
    timestamp: str | None = None
    session_id: str | None = None


def _optional_str(record: dict, key: str) -> tuple[bool, str | None]:
    value = record.get(key)
    return value is None or isinstance(value, str), value


def parse_record(line: str) -> TranscriptRecord | None:
    """Parse one line into a record, or None if it should be ignored."""
    try:
        raw = json.loads(line)
    except ValueError:
        return None
    if not isinstance(raw, dict):
        return None

    fields = {}
    for key, attr in (("type", "entry_type"), ("timestamp", "timestamp"), ("sessionId", "session_id")):
        ok, value = _optional_str(raw, key)
        if not ok:
            return None
        fields[attr] = value

    message = raw.get("message")
    if message is not None and not isinstance(message, dict):
        return None
    content = message.get("content") if message else None

    return TranscriptRecord(content=content, **fields)


def iter_records(content: str) -> Iterator[TranscriptRecord]:
    """Yield every parseable record in file order."""
    for line in content.split("\n"):
        record = parse_record(line)
        if record is not None:
            yield record


def extract_text(content) -> str:
    """Pull the display text out of a message content value.

    Strings are used as-is. For a list of segments, the first "text" segment
    that is not IDE-injected context wins. Only the first line is kept,
    trimmed, with tabs turned into spaces.
    """
    if isinstance(content, str):
        raw = content
    elif isinstance(content, list):
        raw = ""
        for segment in content:
            if not isinstance(segment, dict) or segment.get("type") != "text":
                continue
            text = segment.get("text")
            if isinstance(text, str) and not text.startswith(IDE_TAG_PREFIX):
                raw = text
                break
    else:
        raw = ""

    first_line = raw.split("\n", 1)[0]
    return first_line.strip().replace("\t", " ")


def is_qualifying_text(text: str) -> bool:
    """True for text a human actually typed (not a warmup or IDE sentinel)."""
    return bool(text) and text != WARMUP_TEXT and not text.startswith(IDE_TAG_PREFIX)


def _user_texts(content: str) -> Iterator[str]:
    for record in iter_records(content):
        if record.entry_type == USER_TYPE and record.content is not None:
            yield extract_text(record.content)


def extract_title(content: str) -> str | None:
    """First qualifying user text, capped at 50 characters plus "..."."""
    for text in _user_texts(content):
        if is_qualifying_text(text):
            if len(text) > TITLE_MAX_CHARS:
                return text[:TITLE_MAX_CHARS] + "..."
            return text
    return None


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC.
    """
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def extract_timestamp(content: str) -> datetime | None:
    """Last parseable timestamp in the transcript (later lines win)."""
    last = None
    for record in iter_records(content):
        if record.timestamp is None:
            continue
        parsed = parse_timestamp(record.timestamp)
        if parsed is not None:
            last = parsed
    return last


def is_warmup_only(content: str) -> bool:
    """True when no user record carries qualifying text."""
    return not any(is_qualifying_text(text) for text in _user_texts(content))


def read_first_session_id(path: Path) -> str | None:
    """Session id embedded in the first line of a transcript, if any.

    Raises:
        OSError: if the file cannot be opened or read.
    """
    with path.open("r", encoding="utf-8", errors="replace") as f:
        first_line = f.readline()
    record = parse_record(first_line)
    return record.session_id if record else None
