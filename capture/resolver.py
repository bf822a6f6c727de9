"""
Incremental diff resolution.

Works out which of the files currently differing from HEAD actually changed
content since the previous capture, and produces a diff scoped to exactly
those files.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from config import ChangeScope
from vcs import GitRepository

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Outcome of resolving one capture's file changes."""

    changed_files: list[str]
    new_files: list[str]
    diff: str
    snapshot: dict[str, str] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_files)


def select_new_files(
    changed_files: Sequence[str],
    previous: Mapping[str, str],
    current: Mapping[str, str],
) -> list[str]:
    """
    Pick the differing files whose fingerprint moved since the last capture.

    An empty previous snapshot means this is the first capture of the
    session, so every differing file counts as new. A path missing from a
    non-empty snapshot also counts as new.

    Args:
        changed_files: Paths currently differing from HEAD, in order
        previous: Snapshot from the last capture
        current: Fingerprints of ``changed_files`` now

    Returns:
        Subset of ``changed_files``, order preserved
    """
    if not previous:
        return [path for path in changed_files if path]
    return [
        path
        for path in changed_files
        if path and (path not in previous or previous[path] != current.get(path))
    ]


def resolve_changes(
    repo: GitRepository,
    previous: Mapping[str, str],
    scope: ChangeScope = ChangeScope.INCREMENTAL,
) -> Resolution:
    """
    Resolve the file delta of a capture.

    Args:
        repo: Repository to query
        previous: Fingerprint snapshot from the last capture (may be empty)
        scope: INCREMENTAL compares fingerprints; WORKING_TREE treats every
            differing file as changed

    Returns:
        Resolution with the new files, their scoped diff and the snapshot
        covering every currently differing file

    Raises:
        RepositoryUnavailableError: If a git query fails
    """
    changed_files = repo.changed_files()
    snapshot = repo.fingerprints(changed_files)

    if scope == ChangeScope.WORKING_TREE:
        new_files = list(changed_files)
    else:
        new_files = select_new_files(changed_files, previous, snapshot)

    diff = repo.diff(new_files)
    logger.debug(
        "Resolved %d new of %d differing files (scope=%s)",
        len(new_files),
        len(changed_files),
        scope.value,
    )
    return Resolution(changed_files=changed_files, new_files=new_files, diff=diff, snapshot=snapshot)
