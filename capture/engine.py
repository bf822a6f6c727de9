"""
One capture invocation, end to end.

Reads the transcript, slices off the prompts not yet captured, scopes the
diff to files whose content moved since the last capture, merges the result
into the session store and advances the cursor and snapshot. A capture with
no new prompts writes nothing.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from config import SessionDiffPolicy, Settings, get_settings
from vcs import GitRepository

from .events import EventBus, NullEventBus
from .exceptions import CaptureError, RepositoryUnavailableError, StorageError
from .models import TranscriptSource, utc_timestamp
from .redact import redact_diff, redact_sensitive
from .resolver import resolve_changes
from .sessions import CaptureBatch, apply_capture, build_prompt_changes, find_session
from .state import RepositoryState
from .transcripts import locate_transcript, read_turns, session_id_from_key

logger = logging.getLogger(__name__)


class CaptureStatus(str, Enum):
    CAPTURED = "captured"
    NO_TRANSCRIPT = "no_transcript"
    NO_NEW_PROMPTS = "no_new_prompts"
    SKIPPED = "skipped"


@dataclass
class CaptureOutcome:
    status: CaptureStatus
    session_id: str | None = None
    prompts: int = 0
    files: list[str] = field(default_factory=list)
    reason: str = ""

    @property
    def wrote(self) -> bool:
        return self.status == CaptureStatus.CAPTURED


def _resume_cursor(state: RepositoryState, session_id: str) -> int:
    """
    Cursor for a transcript the state files don't know about.

    If an in-progress record for the id is still in the store (state files
    were removed, or a key changed form), resume after its captured prompts
    instead of re-appending them.
    """
    session = find_session(state.sessions, session_id)
    return len(session.perPromptChanges) if session is not None else 0


def run_capture(
    repo: GitRepository,
    source: TranscriptSource,
    settings: Settings | None = None,
    event_bus: EventBus | None = None,
    now: datetime | None = None,
) -> CaptureOutcome:
    """
    Capture new prompts and their file changes for one repository.

    Args:
        repo: The working repository
        source: Transcript of the assistant session
        settings: Capture settings (defaults to the repository's settings)
        event_bus: Receives session events after a successful save
        now: Capture time override

    Returns:
        What the capture did

    Raises:
        RepositoryUnavailableError: If a git query fails
        StorageError: If the store cannot be read or written
        TranscriptError: If the transcript cannot be read
    """
    settings = settings or get_settings(repo.root)
    event_bus = event_bus or NullEventBus()
    transform = redact_sensitive if settings.redact_secrets else None
    redact = redact_diff if settings.redact_secrets else None

    state = RepositoryState.load(repo.root)
    state.ensure_store()

    previous_key = state.session_key
    is_new_session = state.is_new_session(source.key)
    if is_new_session:
        state.begin_session(source.key)
        state.prompt_cursor = _resume_cursor(state, source.session_id)

    turns = read_turns(source, settings.drop_prompt_markers)
    if not turns or len(turns) <= state.prompt_cursor:
        logger.debug("No new prompts. current=%d last=%d", len(turns), state.prompt_cursor)
        return CaptureOutcome(status=CaptureStatus.NO_NEW_PROMPTS, session_id=source.session_id)

    new_turns = turns[state.prompt_cursor:]
    resolution = resolve_changes(repo, state.fingerprints, settings.change_scope)
    timestamp = utc_timestamp(now)
    head_hash = repo.head_hash()

    changes = build_prompt_changes(
        new_turns,
        timestamp=timestamp,
        commit_hash=head_hash,
        files=resolution.new_files,
        diff=redact(resolution.diff) if redact else resolution.diff,
        transform=transform,
    )
    if not changes:
        return CaptureOutcome(status=CaptureStatus.NO_NEW_PROMPTS, session_id=source.session_id)

    if settings.session_diff == SessionDiffPolicy.CUMULATIVE:
        session_diff = repo.diff()
        if redact is not None:
            session_diff = redact(session_diff)
    else:
        session_diff = changes[-1].diff

    batch = CaptureBatch(
        session_id=source.session_id,
        repo_root=str(repo.root),
        branch=repo.branch(),
        head_hash=head_hash,
        timestamp=timestamp,
        changes=changes,
        session_diff=session_diff,
        provider=settings.provider,
        files=resolution.new_files,
    )
    previous_session_id = session_id_from_key(previous_key) if is_new_session and previous_key else None
    events = apply_capture(state.sessions, batch, previous_session_id)

    state.prompt_cursor = len(turns)
    state.fingerprints = resolution.snapshot
    state.save()

    for event in events:
        event_bus.publish(event)

    return CaptureOutcome(
        status=CaptureStatus.CAPTURED,
        session_id=source.session_id,
        prompts=len(changes),
        files=list(resolution.new_files),
    )


def capture_repository(
    repo_root: str | Path,
    transcript_path: str | None = None,
    settings: Settings | None = None,
    event_bus: EventBus | None = None,
    now: datetime | None = None,
) -> CaptureOutcome:
    """
    Locate the repository and its transcript, then capture.

    Args:
        repo_root: Any directory inside the repository
        transcript_path: Transcript named by the trigger, if any
        settings: Capture settings (defaults to the repository's settings)
        event_bus: Receives session events
        now: Capture time override

    Raises:
        CaptureError, RepositoryUnavailableError: See run_capture
    """
    repo = GitRepository.discover(repo_root)
    settings = settings or get_settings(repo.root)

    source = locate_transcript(repo.root, settings.codex_home, transcript_path)
    if source is None:
        logger.debug("No transcript found for %s", repo.root)
        return CaptureOutcome(status=CaptureStatus.NO_TRANSCRIPT)

    return run_capture(repo, source, settings, event_bus, now)


def capture_safely(
    repo_root: str | Path,
    transcript_path: str | None = None,
    settings: Settings | None = None,
    event_bus: EventBus | None = None,
    now: datetime | None = None,
) -> CaptureOutcome:
    """
    capture_repository for the trigger path: never raises.

    Failures are logged and reported as a SKIPPED outcome with nothing
    persisted by the failing step.
    """
    try:
        return capture_repository(repo_root, transcript_path, settings, event_bus, now)
    except StorageError as e:
        logger.warning("Capture skipped, session store unavailable: %s", e)
        return CaptureOutcome(status=CaptureStatus.SKIPPED, reason=str(e))
    except (CaptureError, RepositoryUnavailableError) as e:
        logger.debug("Capture skipped: %s", e)
        return CaptureOutcome(status=CaptureStatus.SKIPPED, reason=str(e))
    except Exception as e:
        logger.warning("Capture failed unexpectedly: %s", e, exc_info=True)
        return CaptureOutcome(status=CaptureStatus.SKIPPED, reason=str(e))
