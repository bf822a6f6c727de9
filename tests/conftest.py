"""
Shared pytest fixtures for all tests.
"""
import json
import subprocess
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from config import Settings, get_settings
import config.loader


# =============================================================================
# Git helpers
# =============================================================================


def run_git(repo: Path, *args: str) -> str:
    """Run a git command in ``repo`` and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_all(repo: Path, message: str = "commit") -> str:
    """Stage everything, commit, and return the new HEAD hash."""
    run_git(repo, "add", "-A")
    run_git(repo, "commit", "--quiet", "-m", message)
    return run_git(repo, "rev-parse", "HEAD")


def init_repo(path: Path) -> Path:
    """Initialize an empty repository with a test identity."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init", "--quiet")
    run_git(path, "config", "user.email", "test@test.com")
    run_git(path, "config", "user.name", "Test")
    run_git(path, "config", "commit.gpgsign", "false")
    return path.resolve()


# =============================================================================
# Transcript helpers
# =============================================================================


def session_meta(cwd: Path) -> dict[str, Any]:
    return {
        "timestamp": "2026-01-01T00:00:00.000Z",
        "type": "session_meta",
        "payload": {"id": "0199-test", "cwd": str(cwd)},
    }


def message(role: str, text: str) -> dict[str, Any]:
    block_type = "input_text" if role == "user" else "output_text"
    return {
        "timestamp": "2026-01-01T00:00:01.000Z",
        "type": "response_item",
        "payload": {"type": "message", "role": role, "content": [{"type": block_type, "text": text}]},
    }


class TranscriptWriter:
    """Appends records to a rollout transcript the way the assistant does."""

    def __init__(self, path: Path, cwd: Optional[Path] = None):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()
        if cwd is not None:
            self.append(session_meta(cwd))

    def append(self, record: dict[str, Any]) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

    def append_raw(self, text: str) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(text)

    def prompt(self, text: str, response: Optional[str] = None) -> None:
        self.append(message("user", text))
        if response is not None:
            self.append(message("assistant", response))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    """Keep the user's own settings and environment out of every test."""
    monkeypatch.setattr(config.loader, "GLOBAL_SETTINGS_DIR", tmp_path / "global-settings")
    monkeypatch.delenv("PROMPTVC_CODEX_HOME", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A repository with two committed files."""
    repo = init_repo(tmp_path / "repo")
    (repo / "README.md").write_text("# demo\n")
    (repo / "app.py").write_text("print('hello')\n")
    commit_all(repo, "initial")
    return repo


@pytest.fixture
def codex_home(tmp_path: Path) -> Path:
    home = tmp_path / "codex"
    (home / "sessions").mkdir(parents=True)
    return home


@pytest.fixture
def settings(codex_home: Path) -> Settings:
    return Settings(codex_home=codex_home)


@pytest.fixture
def make_transcript(codex_home: Path, git_repo: Path) -> Callable[..., TranscriptWriter]:
    """Factory for rollout transcripts under the test codex home."""

    def _make(name: str = "2026-01-01T00-00-00-a", cwd: Optional[Path] = None) -> TranscriptWriter:
        path = codex_home / "sessions" / "2026" / "01" / "01" / f"rollout-{name}.jsonl"
        return TranscriptWriter(path, cwd=git_repo if cwd is None else cwd)

    return _make
