"""
Tests for repository-scoped persisted state.
"""

import json
from pathlib import Path

import pytest

from capture.exceptions import StorageError
from capture.models import AssistantSession
from capture.state import (
    RepositoryState,
    StatePaths,
    atomic_write_text,
    parse_fingerprints,
    parse_prompt_cursor,
    parse_sessions,
)


def make_session(session_id: str = "rollout-a", **overrides) -> AssistantSession:
    data = {"id": session_id, "repoRoot": "/repo", "createdAt": "2026-01-01T00:00:00Z"}
    data.update(overrides)
    return AssistantSession(**data)


class TestParsers:
    """Test tolerant parsing of the auxiliary state files."""

    @pytest.mark.parametrize("raw,expected", [(None, 0), ("", 0), ("7\n", 7), ("-3", 0), ("abc", 0)])
    def test_prompt_cursor(self, raw, expected):
        assert parse_prompt_cursor(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "{", "[]", '"x"'])
    def test_fingerprints_fall_back_to_empty(self, raw):
        assert parse_fingerprints(raw) == {}

    def test_fingerprints_keep_string_values(self):
        assert parse_fingerprints('{"a.py": "abc", "b.py": 3}') == {"a.py": "abc"}

    def test_sessions_malformed_raises(self, tmp_path: Path):
        """Test a corrupt store is reported instead of treated as empty."""
        with pytest.raises(StorageError) as exc_info:
            parse_sessions("[{", tmp_path / "sessions.json")
        assert exc_info.value.path == tmp_path / "sessions.json"

    def test_sessions_not_array_raises(self, tmp_path: Path):
        with pytest.raises(StorageError):
            parse_sessions('{"id": "x"}', tmp_path / "sessions.json")

    def test_unrecognized_entries_kept_aside(self, tmp_path: Path):
        raw = json.dumps([make_session().model_dump(mode="json"), {"note": "not a session"}])
        sessions, unparsed = parse_sessions(raw, tmp_path / "sessions.json")
        assert [s.id for s in sessions] == ["rollout-a"]
        assert unparsed == [{"note": "not a session"}]


class TestAtomicWrite:
    """Test atomic file replacement."""

    def test_creates_parent_and_replaces(self, tmp_path: Path):
        target = tmp_path / "store" / "value.txt"
        atomic_write_text(target, "one")
        atomic_write_text(target, "two")
        assert target.read_text() == "two"
        assert [p.name for p in target.parent.iterdir()] == ["value.txt"]


class TestRepositoryState:
    """Test loading and saving the per-repository state."""

    def test_empty_repository(self, tmp_path: Path):
        state = RepositoryState.load(tmp_path)
        assert state.session_key == ""
        assert state.prompt_cursor == 0
        assert state.fingerprints == {}
        assert state.sessions == []

    def test_ensure_store_writes_empty_array(self, tmp_path: Path):
        state = RepositoryState.load(tmp_path)
        state.ensure_store()
        assert json.loads(StatePaths.for_repo(tmp_path).sessions.read_text()) == []

    def test_save_and_reload(self, tmp_path: Path):
        state = RepositoryState.load(tmp_path)
        state.session_key = "/codex/rollout-a.jsonl"
        state.prompt_cursor = 3
        state.fingerprints = {"b.py": "2", "a.py": "1"}
        state.sessions = [make_session(hidden=True)]
        state.save()

        reloaded = RepositoryState.load(tmp_path)
        assert reloaded.session_key == "/codex/rollout-a.jsonl"
        assert reloaded.prompt_cursor == 3
        assert reloaded.fingerprints == {"a.py": "1", "b.py": "2"}
        assert reloaded.sessions[0].id == "rollout-a"
        # Keys written by viewers survive a rewrite
        assert reloaded.sessions[0].model_dump()["hidden"] is True

    def test_begin_session_resets_cursor_and_snapshot(self, tmp_path: Path):
        state = RepositoryState(StatePaths.for_repo(tmp_path), "old", 5, {"a.py": "1"})
        assert state.is_new_session("new")
        assert not state.is_new_session("old")

        state.begin_session("new")
        assert (state.session_key, state.prompt_cursor, state.fingerprints) == ("new", 0, {})

    def test_corrupt_cursor_and_snapshot_recover(self, tmp_path: Path):
        paths = StatePaths.for_repo(tmp_path)
        paths.store_dir.mkdir()
        paths.prompt_cursor.write_text("garbage")
        paths.fingerprints.write_text("{not json")

        state = RepositoryState.load(tmp_path)
        assert state.prompt_cursor == 0
        assert state.fingerprints == {}

    def test_corrupt_store_refuses_to_load(self, tmp_path: Path):
        paths = StatePaths.for_repo(tmp_path)
        paths.store_dir.mkdir()
        paths.sessions.write_text("[{ broken")

        with pytest.raises(StorageError):
            RepositoryState.load(tmp_path)
        assert paths.sessions.read_text() == "[{ broken"


class TestSaveFailures:
    """Test a failed save never leaves the store ahead of the cursor."""

    def fail_writes_to(self, monkeypatch, *targets: Path) -> list[Path]:
        real_write = atomic_write_text
        pending = list(targets)

        def write(path: Path, content: str) -> None:
            if path in pending:
                pending.remove(path)
                raise StorageError(path, "write failed: disk full")
            real_write(path, content)

        monkeypatch.setattr("capture.state.atomic_write_text", write)
        return pending

    def saved_state(self, tmp_path: Path) -> RepositoryState:
        state = RepositoryState.load(tmp_path)
        state.session_key = "key"
        state.prompt_cursor = 1
        state.fingerprints = {"a.py": "1"}
        state.sessions = [make_session()]
        state.save()
        return state

    def test_cursor_write_failure_leaves_store_untouched(self, tmp_path: Path, monkeypatch):
        state = self.saved_state(tmp_path)
        paths = state.paths
        store_before = paths.sessions.read_text()

        state.prompt_cursor = 2
        state.sessions = [make_session(prompt="two")]
        self.fail_writes_to(monkeypatch, paths.prompt_cursor)
        with pytest.raises(StorageError):
            state.save()

        assert paths.sessions.read_text() == store_before
        assert paths.prompt_cursor.read_text() == "1"

    def test_store_write_failure_rolls_back_cursor(self, tmp_path: Path, monkeypatch):
        state = self.saved_state(tmp_path)
        paths = state.paths

        state.session_key = "other"
        state.prompt_cursor = 4
        state.fingerprints = {"b.py": "2"}
        self.fail_writes_to(monkeypatch, paths.sessions)
        with pytest.raises(StorageError):
            state.save()

        reloaded = RepositoryState.load(tmp_path)
        assert (reloaded.session_key, reloaded.prompt_cursor) == ("key", 1)
        assert reloaded.fingerprints == {"a.py": "1"}

    def test_rollback_removes_files_that_did_not_exist(self, tmp_path: Path, monkeypatch):
        state = RepositoryState.load(tmp_path)
        state.prompt_cursor = 1
        self.fail_writes_to(monkeypatch, state.paths.sessions)
        with pytest.raises(StorageError):
            state.save()

        assert not state.paths.prompt_cursor.exists()
        assert not state.paths.session_key.exists()
