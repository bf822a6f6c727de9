"""
Tests for session aggregation.
"""

from capture.models import AssistantSession, PromptChange, PromptTurn, SessionState
from capture.sessions import (
    CaptureBatch,
    apply_capture,
    build_prompt_changes,
    end_session,
    find_session,
    merge_files,
    session_state,
    summarize_changes,
)


def change(prompt: str, files: list[str] | None = None, timestamp: str = "2026-01-01T00:00:00Z") -> PromptChange:
    return PromptChange(prompt=prompt, timestamp=timestamp, hash="abc", files=files or [], diff="")


def batch(session_id: str, prompts: list[str], files: list[str] | None = None, timestamp: str = "2026-01-01T00:00:00Z") -> CaptureBatch:
    files = files or []
    return CaptureBatch(
        session_id=session_id,
        repo_root="/repo",
        branch="main",
        head_hash="abc",
        timestamp=timestamp,
        changes=[change(p, files, timestamp) for p in prompts],
        session_diff=f"diff for {','.join(prompts)}",
        files=files,
    )


class TestBuildPromptChanges:
    """Test turning turns into prompt change records."""

    def test_shared_delta_and_empty_response(self):
        turns = [PromptTurn(prompt="one", response="did one"), PromptTurn(prompt="two")]
        changes = build_prompt_changes(turns, "2026-01-01T00:00:00Z", "abc", ["a.py"], "the diff")

        assert [c.prompt for c in changes] == ["one", "two"]
        assert [c.response for c in changes] == ["did one", None]
        assert all(c.files == ["a.py"] and c.diff == "the diff" for c in changes)

    def test_empty_prompts_never_emitted(self):
        changes = build_prompt_changes([PromptTurn(prompt="")], "t", "abc", ["a.py"], "diff")
        assert changes == []

    def test_transform_applied_to_text_not_diff(self):
        """Test the diff passes through; it is redacted before it gets here."""
        changes = build_prompt_changes(
            [PromptTurn(prompt="p", response="r")], "t", "abc", [], "d", transform=str.upper
        )
        assert (changes[0].prompt, changes[0].response, changes[0].diff) == ("P", "R", "d")


class TestHelpers:
    def test_merge_files_dedupes_in_order(self):
        assert merge_files(["a", "b"], ["b", "c", "", "a"]) == ["a", "b", "c"]

    def test_summary(self):
        assert summarize_changes([change("x")]) == "Interactive session: 1 prompt"
        assert summarize_changes([change("x"), change("y")]) == "Interactive session: 2 prompts"


class TestApplyCapture:
    """Test the session lifecycle: absent, in progress, ended."""

    def test_create_then_update(self):
        sessions: list[AssistantSession] = []
        events = apply_capture(sessions, batch("A", ["one"], ["a.py"], "2026-01-01T00:00:00Z"))
        assert [e.type for e in events] == ["session.created"]
        assert session_state(sessions, "A") == SessionState.IN_PROGRESS

        events = apply_capture(sessions, batch("A", ["two", "three"], ["b.py"], "2026-01-01T00:05:00Z"))
        assert [e.type for e in events] == ["session.updated"]

        assert len(sessions) == 1
        session = sessions[0]
        assert [c.prompt for c in session.perPromptChanges] == ["one", "two", "three"]
        assert session.files == ["a.py", "b.py"]
        assert session.prompt == "three"
        assert session.diff == "diff for two,three"
        assert session.responseSnippet == "Interactive session: 3 prompts"
        assert session.createdAt == "2026-01-01T00:00:00Z"
        assert session.updatedAt == "2026-01-01T00:05:00Z"
        assert session.mode == "interactive"
        assert session.autoTagged is True

    def test_transition_ends_previous(self):
        sessions: list[AssistantSession] = []
        apply_capture(sessions, batch("A", ["one"]))
        events = apply_capture(sessions, batch("B", ["two"], timestamp="2026-01-02T00:00:00Z"), previous_session_id="A")

        assert [e.type for e in events] == ["session.ended", "session.created"]
        assert [s.id for s in sessions] == ["B", "A"]
        assert session_state(sessions, "A") == SessionState.ENDED
        assert sessions[1].endedAt == "2026-01-02T00:00:00Z"
        assert sessions[1].postHash == "abc"
        assert sessions[0].postHash is None
        assert events[0].properties["info"]["id"] == "A"

    def test_reused_id_after_end_creates_fresh_record(self):
        """Test a superseded id starts a new record instead of reopening the old one."""
        sessions: list[AssistantSession] = []
        apply_capture(sessions, batch("A", ["one"]))
        apply_capture(sessions, batch("B", ["two"]), previous_session_id="A")
        events = apply_capture(sessions, batch("A", ["three"]), previous_session_id="B")

        assert [e.type for e in events] == ["session.ended", "session.created"]
        assert [(s.id, s.inProgress) for s in sessions] == [("A", True), ("B", False), ("A", False)]
        assert [c.prompt for c in sessions[0].perPromptChanges] == ["three"]
        assert [c.prompt for c in sessions[2].perPromptChanges] == ["one"]
        assert find_session(sessions, "A") is sessions[0]

    def test_absent(self):
        assert session_state([], "nope") == SessionState.ABSENT

    def test_end_session_without_head(self):
        """Test a record ended with no HEAD known gets no postHash."""
        sessions: list[AssistantSession] = []
        apply_capture(sessions, batch("A", ["one"]))

        ended = end_session(sessions, "A", "2026-01-02T00:00:00Z")

        assert ended is sessions[0]
        assert ended.postHash is None
        assert end_session(sessions, "A", "2026-01-03T00:00:00Z") is None
