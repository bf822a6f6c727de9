"""
Repository-scoped persisted state.

One RepositoryState is loaded per capture invocation, mutated in memory and
saved as a whole; nothing is shared between invocations. It bundles the
session store, the prompt cursor and the content fingerprint snapshot, all
kept under ``<repo>/.promptvc/``.

Concurrent invocations against the same repository are not locked against
each other. Each file is replaced atomically, but two overlapping captures
can still lose one capture's update.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .constants import (
    FINGERPRINT_FILENAME,
    PROMPT_CURSOR_FILENAME,
    SESSION_KEY_FILENAME,
    SESSIONS_FILENAME,
    STORE_DIR_NAME,
)
from .exceptions import StorageError
from .models import AssistantSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatePaths:
    """Locations of the persisted state files for one repository."""

    store_dir: Path

    @classmethod
    def for_repo(cls, repo_root: Path) -> "StatePaths":
        return cls(store_dir=Path(repo_root) / STORE_DIR_NAME)

    @property
    def sessions(self) -> Path:
        return self.store_dir / SESSIONS_FILENAME

    @property
    def prompt_cursor(self) -> Path:
        return self.store_dir / PROMPT_CURSOR_FILENAME

    @property
    def session_key(self) -> Path:
        return self.store_dir / SESSION_KEY_FILENAME

    @property
    def fingerprints(self) -> Path:
        return self.store_dir / FINGERPRINT_FILENAME


# =============================================================================
# File helpers
# =============================================================================


def atomic_write_text(path: Path, content: str) -> None:
    """
    Replace ``path`` with ``content`` via a temp file in the same directory.

    Raises:
        StorageError: If the directory or file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise StorageError(path, f"write failed: {e}") from e


def read_text(path: Path) -> str | None:
    """
    Read a state file.

    Returns:
        The content, or None if the file doesn't exist

    Raises:
        StorageError: If the file exists but cannot be read
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(path, f"read failed: {e}") from e


def parse_prompt_cursor(raw: str | None) -> int:
    """Parse the cursor file; anything but a non-negative integer means 0."""
    if raw is None:
        return 0
    try:
        value = int(raw.strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


def parse_fingerprints(raw: str | None) -> dict[str, str]:
    """Parse the snapshot file; anything but a path -> hash object means empty."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if not isinstance(data, dict):
        return {}
    return {path: value for path, value in data.items() if isinstance(value, str)}


def parse_sessions(raw: str | None, path: Path) -> tuple[list[AssistantSession], list[Any]]:
    """
    Parse the session store.

    Entries that don't validate as sessions are returned separately so they
    can be written back untouched.

    Raises:
        StorageError: If the store isn't a JSON array
    """
    if raw is None or not raw.strip():
        return [], []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageError(path, f"malformed session store: {e}") from e
    if not isinstance(data, list):
        raise StorageError(path, "session store is not a JSON array")

    sessions: list[AssistantSession] = []
    unparsed: list[Any] = []
    for entry in data:
        try:
            sessions.append(AssistantSession.model_validate(entry))
        except ValidationError as e:
            logger.warning("Keeping unrecognized session store entry as-is: %s", e.errors()[:1])
            unparsed.append(entry)
    return sessions, unparsed


# =============================================================================
# Repository state
# =============================================================================


class RepositoryState:
    """
    Persisted capture state for one repository.

    Attributes:
        session_key: Transcript identity the cursor and snapshot belong to
        prompt_cursor: Number of sanitized prompts already captured
        fingerprints: Path -> blob id as of the last successful capture
        sessions: Session records, newest first
    """

    def __init__(
        self,
        paths: StatePaths,
        session_key: str = "",
        prompt_cursor: int = 0,
        fingerprints: dict[str, str] | None = None,
        sessions: list[AssistantSession] | None = None,
        unparsed: list[Any] | None = None,
    ):
        self.paths = paths
        self.session_key = session_key
        self.prompt_cursor = prompt_cursor
        self.fingerprints = fingerprints or {}
        self.sessions = sessions or []
        self._unparsed = unparsed or []

    @classmethod
    def load(cls, repo_root: Path) -> "RepositoryState":
        """
        Read the full state of a repository into memory.

        Missing files load as empty state.

        Raises:
            StorageError: If a file cannot be read or the store is malformed
        """
        paths = StatePaths.for_repo(repo_root)
        sessions, unparsed = parse_sessions(read_text(paths.sessions), paths.sessions)
        return cls(
            paths=paths,
            session_key=(read_text(paths.session_key) or "").strip(),
            prompt_cursor=parse_prompt_cursor(read_text(paths.prompt_cursor)),
            fingerprints=parse_fingerprints(read_text(paths.fingerprints)),
            sessions=sessions,
            unparsed=unparsed,
        )

    def ensure_store(self) -> None:
        """Create an empty session store if none exists yet."""
        if not self.paths.sessions.exists():
            atomic_write_text(self.paths.sessions, "[]")

    def is_new_session(self, key: str) -> bool:
        return key != self.session_key

    def begin_session(self, key: str) -> None:
        """Switch to a new transcript: cursor and snapshot start over."""
        logger.debug("Session key changed from %r to %r", self.session_key, key)
        self.session_key = key
        self.prompt_cursor = 0
        self.fingerprints = {}

    def dump_sessions(self) -> list[Any]:
        return [session.model_dump(mode="json") for session in self.sessions] + self._unparsed

    def save(self) -> None:
        """
        Write every state file.

        The cursor files go first and the session store last. If any write
        fails, the cursor files are put back as they were, so the store
        never holds prompts the cursor hasn't moved past.

        Raises:
            StorageError: If any file cannot be written
        """
        auxiliary = [
            (self.paths.session_key, self.session_key),
            (self.paths.prompt_cursor, str(self.prompt_cursor)),
            (self.paths.fingerprints, json.dumps(self.fingerprints, indent=2, sort_keys=True)),
        ]
        previous = {path: read_text(path) for path, _ in auxiliary}

        try:
            for path, content in auxiliary:
                atomic_write_text(path, content)
            atomic_write_text(self.paths.sessions, json.dumps(self.dump_sessions(), indent=2, ensure_ascii=False))
        except StorageError:
            _restore_files(previous)
            raise


def _restore_files(contents: dict[Path, str | None]) -> None:
    """Put files back to earlier contents; None means the file didn't exist."""
    for path, content in contents.items():
        try:
            if content is None:
                path.unlink(missing_ok=True)
            else:
                atomic_write_text(path, content)
        except (OSError, StorageError) as e:
            logger.warning("Could not roll back %s: %s", path, e)
