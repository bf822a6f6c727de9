"""
Polling subscriber for the session store.

Viewers that show in-progress sessions don't hook into the capture path;
they watch the store file and re-read it when it changes.
"""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

from .exceptions import StorageError
from .models import AssistantSession
from .state import StatePaths, parse_sessions, read_text

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0

FileSignature = tuple[int, int]


def file_signature(path: Path) -> FileSignature | None:
    """(mtime_ns, size) of ``path``, or None if it doesn't exist."""
    try:
        stat = os.stat(path)
    except FileNotFoundError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


def load_sessions(path: Path) -> list[AssistantSession]:
    """
    Read the session store at ``path``.

    Raises:
        StorageError: If the store cannot be read or is malformed
    """
    sessions, _ = parse_sessions(read_text(path), path)
    return sessions


class SessionWatcher:
    """
    Re-reads the session store whenever its file signature changes.

    Args:
        store_path: Path to sessions.json
        on_change: Called with the freshly read sessions
        interval: Seconds between polls in run()
    """

    def __init__(
        self,
        store_path: Path,
        on_change: Callable[[list[AssistantSession]], None],
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ):
        self.store_path = Path(store_path)
        self.on_change = on_change
        self.interval = interval
        self._signature: FileSignature | None = None

    @classmethod
    def for_repo(
        cls,
        repo_root: Path,
        on_change: Callable[[list[AssistantSession]], None],
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> "SessionWatcher":
        return cls(StatePaths.for_repo(repo_root).sessions, on_change, interval)

    def poll(self) -> bool:
        """
        Check the store once.

        Returns:
            True if the store changed and on_change was called
        """
        signature = file_signature(self.store_path)
        if signature is None or signature == self._signature:
            return False

        try:
            sessions = load_sessions(self.store_path)
        except StorageError as e:
            # Likely caught mid-write by a non-atomic writer; retry next poll
            logger.debug("Session store not readable yet: %s", e)
            return False

        self._signature = signature
        self.on_change(sessions)
        return True

    def run(self, stop_event: threading.Event) -> None:
        """Poll until ``stop_event`` is set."""
        logger.debug("Watching %s every %.1fs", self.store_path, self.interval)
        while not stop_event.is_set():
            self.poll()
            stop_event.wait(self.interval)
