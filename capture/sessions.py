"""
Session aggregation.

Merges newly captured prompt changes into the session store. Per session id
a record is absent, in progress, or ended (superseded by another
transcript). Captures only ever merge into an in-progress record; an id that
shows up again after it was ended starts a fresh record.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .events import Event
from .models import AssistantSession, PromptChange, PromptTurn, SessionState

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

INTERACTIVE_MODE = "interactive"


@dataclass
class CaptureBatch:
    """Everything one capture contributes to a session record."""

    session_id: str
    repo_root: str
    branch: str
    head_hash: str
    timestamp: str
    changes: list[PromptChange]
    session_diff: str
    provider: str = "codex"
    files: list[str] = field(default_factory=list)


# =============================================================================
# Lookup
# =============================================================================


def find_session(
    sessions: Sequence[AssistantSession],
    session_id: str,
    include_ended: bool = False,
) -> AssistantSession | None:
    """
    Find the record a capture for ``session_id`` would merge into.

    Args:
        sessions: Session records, newest first
        session_id: Session identifier
        include_ended: Also match records that were already superseded

    Returns:
        The newest matching record, or None
    """
    for session in sessions:
        if session.id != session_id:
            continue
        if include_ended or session.inProgress:
            return session
    return None


def session_state(sessions: Sequence[AssistantSession], session_id: str) -> SessionState:
    """Lifecycle state of the newest record for ``session_id``."""
    session = find_session(sessions, session_id, include_ended=True)
    if session is None:
        return SessionState.ABSENT
    return session.state


# =============================================================================
# Building blocks
# =============================================================================


def merge_files(existing: Iterable[str], incoming: Iterable[str]) -> list[str]:
    """Union of two path lists, deduplicated, first occurrence wins."""
    return list(dict.fromkeys(path for path in [*existing, *incoming] if path))


def summarize_changes(changes: Sequence[PromptChange]) -> str:
    count = len(changes)
    return f"Interactive session: {count} prompt{'' if count == 1 else 's'}"


def build_prompt_changes(
    turns: Sequence[PromptTurn],
    timestamp: str,
    commit_hash: str,
    files: Sequence[str],
    diff: str,
    transform: Callable[[str], str] | None = None,
) -> list[PromptChange]:
    """
    Turn newly seen prompt turns into prompt change records.

    All turns of one capture share its file delta. Turns without prompt
    text are dropped.

    Args:
        turns: New turns, in order
        timestamp: Capture timestamp
        commit_hash: HEAD at capture time
        files: Files attributed to this capture
        diff: Diff scoped to ``files``, already redacted when redaction is on
        transform: Applied to prompt and response text (redaction)

    Returns:
        One PromptChange per turn with prompt text
    """
    apply = transform or (lambda text: text)
    changes: list[PromptChange] = []
    for turn in turns:
        if not turn.prompt:
            continue
        changes.append(
            PromptChange(
                prompt=apply(turn.prompt),
                response=apply(turn.response) if turn.response else None,
                timestamp=timestamp,
                hash=commit_hash,
                files=list(files),
                diff=diff,
            )
        )
    return changes


# =============================================================================
# Transitions
# =============================================================================


def end_session(
    sessions: Sequence[AssistantSession],
    session_id: str,
    timestamp: str,
    head_hash: str = "",
) -> AssistantSession | None:
    """
    Mark the in-progress record for ``session_id`` as ended.

    ``head_hash`` is HEAD at the transition and becomes the record's
    ``postHash``.

    Returns:
        The ended record, or None if there was nothing in progress
    """
    session = find_session(sessions, session_id)
    if session is None:
        return None
    session.inProgress = False
    session.endedAt = timestamp
    session.postHash = head_hash or None
    logger.info("Session ended: %s", session_id)
    return session


def create_session(batch: CaptureBatch) -> AssistantSession:
    """Open a new in-progress record seeded from the first capture."""
    latest_prompt = batch.changes[-1].prompt if batch.changes else ""
    return AssistantSession(
        id=batch.session_id,
        provider=batch.provider,
        repoRoot=batch.repo_root,
        branch=batch.branch,
        preHash=batch.head_hash,
        postHash=None,
        prompt=latest_prompt,
        responseSnippet=summarize_changes(batch.changes),
        files=merge_files([], batch.files),
        diff=batch.session_diff,
        createdAt=batch.timestamp,
        updatedAt=batch.timestamp,
        mode=INTERACTIVE_MODE,
        autoTagged=True,
        inProgress=True,
        perPromptChanges=list(batch.changes),
    )


def append_to_session(session: AssistantSession, batch: CaptureBatch) -> AssistantSession:
    """Merge a capture into an in-progress record."""
    session.provider = batch.provider
    session.repoRoot = batch.repo_root
    session.branch = batch.branch
    if batch.changes:
        session.prompt = batch.changes[-1].prompt
    session.diff = batch.session_diff
    session.mode = INTERACTIVE_MODE
    session.autoTagged = True
    session.inProgress = True
    session.updatedAt = batch.timestamp
    if not session.createdAt:
        session.createdAt = batch.timestamp
    if not session.preHash:
        session.preHash = batch.head_hash

    session.files = merge_files(session.files, batch.files)
    session.perPromptChanges = [*session.perPromptChanges, *batch.changes]
    session.responseSnippet = summarize_changes(session.perPromptChanges)
    return session


def apply_capture(
    sessions: list[AssistantSession],
    batch: CaptureBatch,
    previous_session_id: str | None = None,
) -> list[Event]:
    """
    Merge a capture into the session list in place.

    Args:
        sessions: Session records, newest first; modified in place
        batch: The capture to merge
        previous_session_id: Session that was being captured before this
            one, when the transcript changed; it is ended first

    Returns:
        Events describing what changed, in order
    """
    events: list[Event] = []

    if previous_session_id and previous_session_id != batch.session_id:
        ended = end_session(sessions, previous_session_id, batch.timestamp, batch.head_hash)
        if ended is not None:
            events.append(Event(type="session.ended", properties={"info": ended.model_dump(mode="json")}))

    session = find_session(sessions, batch.session_id)
    if session is None:
        session = create_session(batch)
        sessions.insert(0, session)
        logger.info("Session created: %s (%d prompts)", session.id, len(batch.changes))
        event_type = "session.created"
    else:
        append_to_session(session, batch)
        logger.info("Session updated: %s (+%d prompts)", session.id, len(batch.changes))
        event_type = "session.updated"

    events.append(Event(type=event_type, properties={"info": session.model_dump(mode="json")}))
    return events
