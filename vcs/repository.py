"""
Read-only queries against the user's working repository.

Wraps GitPython so the capture engine can ask for the current commit, the
current branch, the paths that differ from HEAD, blob ids of working-tree
files, and diffs restricted to a set of paths. Nothing here mutates the
repository.
"""

from __future__ import annotations

import logging
from pathlib import Path

import git
from git import Repo

from .exceptions import RepositoryUnavailableError

logger = logging.getLogger(__name__)

# Object id git uses for "no such blob"; recorded for deleted paths
NULL_OBJECT_ID = "0" * 40


class GitRepository:
    """
    A working repository as seen by the capture engine.

    Every GitPython failure (missing binary, not a repository, failing
    command) surfaces as RepositoryUnavailableError.
    """

    def __init__(self, root: str | Path):
        """
        Open the repository whose working tree is rooted at ``root``.

        Args:
            root: Top-level directory of the working tree

        Raises:
            RepositoryUnavailableError: If ``root`` is not a git working tree
        """
        try:
            self._repo = Repo(str(root))
        except git.exc.GitError as e:
            raise RepositoryUnavailableError(f"Not a git repository: {root}") from e
        if self._repo.bare or self._repo.working_tree_dir is None:
            raise RepositoryUnavailableError(f"Repository has no working tree: {root}")
        self.root = Path(self._repo.working_tree_dir).resolve()

    @classmethod
    def discover(cls, path: str | Path) -> GitRepository:
        """
        Find the repository containing ``path``.

        Args:
            path: Any directory inside the working tree

        Returns:
            GitRepository rooted at the top-level directory

        Raises:
            RepositoryUnavailableError: If no enclosing repository exists
        """
        try:
            repo = Repo(str(path), search_parent_directories=True)
        except git.exc.GitError as e:
            raise RepositoryUnavailableError(f"Not a git repository (or any parent): {path}") from e
        if repo.working_tree_dir is None:
            raise RepositoryUnavailableError(f"Repository has no working tree: {path}")
        return cls(repo.working_tree_dir)

    @property
    def has_head(self) -> bool:
        """Whether HEAD points at a commit (false in a fresh repository)."""
        try:
            return self._repo.head.is_valid()
        except git.exc.GitError:
            return False

    def head_hash(self) -> str:
        """
        Get the current HEAD commit hash.

        Returns:
            str: 40-char hex hash, or "" when the repository has no commits
        """
        if not self.has_head:
            return ""
        return self._repo.head.commit.hexsha

    def branch(self) -> str:
        """
        Get the current branch name.

        Returns:
            str: Branch name, "HEAD" when detached, "" when undeterminable
        """
        try:
            return self._repo.git.rev_parse("--abbrev-ref", "HEAD")
        except git.exc.GitError:
            return ""

    def changed_files(self) -> list[str]:
        """
        List paths whose working-tree content differs from the committed state.

        Compares against HEAD, or against the index when no commit exists yet.

        Returns:
            list[str]: Repository-relative paths in git's order

        Raises:
            RepositoryUnavailableError: If the query fails
        """
        args = ["--name-only", "-z"]
        if self.has_head:
            args.append("HEAD")
        output = self._run_diff(*args)
        return [path for path in output.split("\0") if path.strip()]

    def fingerprint(self, path: str) -> str:
        """
        Compute the git blob id of a working-tree file.

        Args:
            path: Repository-relative path

        Returns:
            str: Blob id, NULL_OBJECT_ID for a missing file, "" when
                the path cannot be hashed (e.g. a submodule directory)
        """
        full_path = self.root / path
        if not full_path.exists():
            return NULL_OBJECT_ID
        try:
            return self._repo.git.hash_object("--", path)
        except git.exc.GitCommandError as e:
            logger.debug("Could not fingerprint %s: %s", path, e)
            return ""
        except git.exc.GitError as e:
            raise RepositoryUnavailableError(f"git hash-object failed in {self.root}: {e}") from e

    def fingerprints(self, paths: list[str]) -> dict[str, str]:
        """Fingerprint every path in ``paths``."""
        return {path: self.fingerprint(path) for path in paths}

    def diff(self, paths: list[str] | None = None) -> str:
        """
        Get the unified diff of the working tree against the committed state.

        Args:
            paths: Restrict the diff to these paths (None = whole tree,
                empty list = nothing)

        Returns:
            str: Unified diff text without a trailing newline

        Raises:
            RepositoryUnavailableError: If the query fails
        """
        if paths is not None and not paths:
            return ""
        args: list[str] = []
        if self.has_head:
            args.append("HEAD")
        if paths:
            args.append("--")
            args.extend(paths)
        return self._run_diff(*args)

    def _run_diff(self, *args: str) -> str:
        try:
            return self._repo.git.diff(*args)
        except git.exc.GitError as e:
            raise RepositoryUnavailableError(f"git diff failed in {self.root}: {e}") from e
