"""
Transcript reading and discovery.

A transcript is an append-only JSONL event log written by the coding
assistant. This module turns one into ordered prompt/response turns with
injected instruction boilerplate removed, and locates the transcript that
belongs to a repository.
"""

import json
import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import Any

from .constants import (
    AGENTS_HEADING_PATTERN,
    DELIMITED_BLOCK_PATTERNS,
    HISTORY_FILENAME,
    RESPONSE_ITEM_TYPE,
    RESPONSE_SEPARATOR,
    ROLLOUT_GLOB,
    SESSION_META_TYPE,
    SESSIONS_SUBDIR,
    TRANSCRIPT_SUFFIX,
    UNTERMINATED_BLOCK_PATTERNS,
)
from .exceptions import TranscriptError
from .models import PromptTurn, TranscriptSource

logger = logging.getLogger(__name__)

# session_meta is the first record; it never spans more than this
FIRST_LINE_MAX_BYTES = 1024 * 1024


# =============================================================================
# Reading
# =============================================================================


def iter_records(path: Path) -> Iterator[dict[str, Any]]:
    """
    Yield every well-formed JSON object in a JSONL file.

    Malformed lines are skipped. A trailing line still being written is
    either incomplete JSON (skipped) or complete, so a partial write never
    raises.

    Args:
        path: Transcript path

    Raises:
        TranscriptError: If the file cannot be read at all
    """
    try:
        raw = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise TranscriptError(f"Cannot read transcript {path}: {e}") from e

    for line in raw.split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(record, dict):
            yield record


def extract_message_text(record: dict[str, Any]) -> str:
    """
    Get the text of a message record.

    Content is either a string or a list of blocks, each a string or an
    object with a ``text`` or ``value`` field.
    """
    payload = record.get("payload")
    if not isinstance(payload, dict):
        return ""
    content = payload.get("content")

    if isinstance(content, str):
        return content.rstrip()
    if not isinstance(content, list):
        return ""

    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict):
            if isinstance(block.get("text"), str):
                parts.append(block["text"])
            elif isinstance(block.get("value"), str):
                parts.append(block["value"])
    return "\n".join(parts).rstrip()


def extract_turns(records: Iterable[dict[str, Any]]) -> list[PromptTurn]:
    """
    Group message records into prompt/response turns.

    A turn starts at a user message; assistant messages that follow it are
    joined into its response until the next user message. Assistant
    messages before the first user message are dropped.
    """
    turns: list[PromptTurn] = []
    current: PromptTurn | None = None

    for record in records:
        if record.get("type") != RESPONSE_ITEM_TYPE:
            continue
        payload = record.get("payload")
        role = payload.get("role") if isinstance(payload, dict) else None
        if role not in ("user", "assistant"):
            continue

        text = extract_message_text(record)
        if not text:
            continue

        if role == "user":
            if current is not None:
                turns.append(current)
            current = PromptTurn(prompt=text)
        elif current is not None:
            current.response = f"{current.response}{RESPONSE_SEPARATOR}{text}" if current.response else text

    if current is not None:
        turns.append(current)
    return turns


def strip_instruction_blocks(prompt: str) -> str:
    """
    Remove injected instruction boilerplate from a prompt.

    Drops leading ``# AGENTS.md instructions`` headings and every
    ``<INSTRUCTIONS>`` / ``<environment_context>`` block, including an
    unterminated one running to the end of the text.
    """
    cleaned = prompt.replace("\r\n", "\n")

    # Leading headings may repeat (one per instructions file)
    while True:
        stripped = AGENTS_HEADING_PATTERN.sub("", cleaned.lstrip(), count=1)
        if stripped == cleaned.lstrip():
            break
        cleaned = stripped

    for pattern in DELIMITED_BLOCK_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    for pattern in UNTERMINATED_BLOCK_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def sanitize_turns(turns: Sequence[PromptTurn], drop_markers: Sequence[str] = ()) -> list[PromptTurn]:
    """
    Strip boilerplate from every turn and drop turns left without a prompt.

    Args:
        turns: Raw turns in transcript order
        drop_markers: Substrings that mark a whole prompt as boilerplate

    Returns:
        Cleaned turns, in order
    """
    cleaned: list[PromptTurn] = []
    for turn in turns:
        prompt = strip_instruction_blocks(turn.prompt)
        if not prompt:
            continue
        if any(marker and marker in prompt for marker in drop_markers):
            continue
        cleaned.append(PromptTurn(prompt=prompt, response=turn.response.strip()))
    return cleaned


def read_history_turns(path: Path, session_id: str) -> list[PromptTurn]:
    """Collect the prompts recorded for ``session_id`` in a history log."""
    return [
        PromptTurn(prompt=record["text"])
        for record in iter_records(path)
        if record.get("session_id") == session_id
        and isinstance(record.get("text"), str)
        and record["text"]
    ]


def read_turns(source: TranscriptSource, drop_markers: Sequence[str] = ()) -> list[PromptTurn]:
    """
    Read the sanitized prompt turns of a transcript.

    Deterministic: reading an unchanged transcript twice gives equal output.

    Args:
        source: The transcript to read
        drop_markers: Substrings that mark a whole prompt as boilerplate

    Returns:
        Sanitized turns, in order

    Raises:
        TranscriptError: If the transcript cannot be read
    """
    if source.kind == "history":
        turns = read_history_turns(source.path, source.session_id)
    else:
        turns = extract_turns(iter_records(source.path))
    return sanitize_turns(turns, drop_markers)


# =============================================================================
# Identity
# =============================================================================


def rollout_source(path: Path) -> TranscriptSource:
    """Describe a rollout transcript: id is the file stem, key the full path."""
    return TranscriptSource(path=path, kind="rollout", session_id=path.stem, key=str(path))


def session_id_from_key(key: str) -> str:
    """Recover the session id a stored cursor key refers to."""
    if key.endswith(TRANSCRIPT_SUFFIX):
        return Path(key).stem
    return key


# =============================================================================
# Discovery
# =============================================================================


def list_rollout_files(codex_home: Path) -> list[Path]:
    """List rollout transcripts under ``codex_home``, newest first."""
    sessions_root = codex_home / SESSIONS_SUBDIR
    if not sessions_root.is_dir():
        return []

    with_mtime: list[tuple[float, Path]] = []
    for path in sessions_root.rglob(ROLLOUT_GLOB):
        try:
            if path.is_file():
                with_mtime.append((path.stat().st_mtime, path))
        except OSError:
            continue
    with_mtime.sort(key=lambda item: item[0], reverse=True)
    return [path for _, path in with_mtime]


def read_first_record(path: Path) -> dict[str, Any] | None:
    """Parse the first line of a JSONL file without reading the whole file."""
    try:
        with path.open("rb") as f:
            line = f.readline(FIRST_LINE_MAX_BYTES)
    except OSError:
        return None
    try:
        record = json.loads(line.decode("utf-8", errors="replace"))
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None


def transcript_cwd(path: Path) -> str | None:
    """Get the working directory recorded in a rollout's session_meta record."""
    record = read_first_record(path)
    if not record or record.get("type") != SESSION_META_TYPE:
        return None
    payload = record.get("payload")
    cwd = payload.get("cwd") if isinstance(payload, dict) else None
    return cwd if isinstance(cwd, str) else None


def cwd_in_repo(cwd: str | None, repo_root: Path) -> bool:
    """Whether ``cwd`` is the repository root or lies beneath it."""
    if not cwd:
        return False
    root = os.path.realpath(repo_root)
    candidate = os.path.realpath(cwd)
    return candidate == root or candidate.startswith(root + os.sep)


def find_latest_rollout(codex_home: Path) -> Path | None:
    """Newest rollout transcript for any repository."""
    files = list_rollout_files(codex_home)
    return files[0] if files else None


def find_rollout_for_repo(codex_home: Path, repo_root: Path) -> Path | None:
    """Newest rollout transcript whose session ran inside ``repo_root``."""
    for path in list_rollout_files(codex_home):
        if cwd_in_repo(transcript_cwd(path), repo_root):
            return path
    return None


def history_source(codex_home: Path) -> TranscriptSource | None:
    """
    Describe the history-log fallback.

    The session is the one named by the last well-formed line.
    """
    path = codex_home / HISTORY_FILENAME
    if not path.is_file():
        return None
    session_id = None
    for record in iter_records(path):
        if isinstance(record.get("session_id"), str) and record["session_id"]:
            session_id = record["session_id"]
    if session_id is None:
        return None
    return TranscriptSource(path=path, kind="history", session_id=session_id, key=session_id)


def locate_transcript(
    repo_root: Path,
    codex_home: Path,
    explicit_path: str | None = None,
) -> TranscriptSource | None:
    """
    Find the transcript a capture for ``repo_root`` should read.

    Order: an explicit existing path, the newest rollout that ran inside the
    repository, then the history log.

    Args:
        repo_root: Repository root
        codex_home: The assistant's home directory
        explicit_path: Transcript path handed over by the trigger, if any

    Returns:
        The transcript source, or None when there is nothing to read
    """
    if explicit_path:
        path = Path(explicit_path).expanduser()
        if path.is_file():
            logger.debug("Using transcript from payload: %s", path)
            return rollout_source(path)

    rollout = find_rollout_for_repo(codex_home, repo_root)
    if rollout is not None:
        logger.debug("Found transcript for %s: %s", repo_root, rollout)
        return rollout_source(rollout)

    source = history_source(codex_home)
    if source is not None:
        logger.debug("Falling back to history log: %s", source.path)
    return source
