"""
Capture engine package.

Records, per assistant session, the prompts issued and the source changes
attributable to each, in a per-repository session store. The notify hook
package wraps these operations for the assistant's trigger.
"""

from .engine import CaptureOutcome, CaptureStatus, capture_repository, capture_safely, run_capture
from .events import CollectingEventBus, Event, EventBus, NullEventBus
from .exceptions import CaptureError, RepositoryUnavailableError, StorageError, TranscriptError
from .models import (
    AssistantSession,
    PromptChange,
    PromptTurn,
    SessionState,
    TranscriptSource,
    utc_timestamp,
)
from .resolver import Resolution, resolve_changes, select_new_files
from .sessions import CaptureBatch, apply_capture, find_session, session_state
from .state import RepositoryState, StatePaths
from .transcripts import locate_transcript, read_turns, sanitize_turns, strip_instruction_blocks
from .watcher import SessionWatcher

__all__ = [
    # Exceptions
    "CaptureError",
    "RepositoryUnavailableError",
    "StorageError",
    "TranscriptError",
    # Events
    "Event",
    "EventBus",
    "NullEventBus",
    "CollectingEventBus",
    # Models
    "AssistantSession",
    "PromptChange",
    "PromptTurn",
    "SessionState",
    "TranscriptSource",
    "utc_timestamp",
    # Transcripts
    "locate_transcript",
    "read_turns",
    "sanitize_turns",
    "strip_instruction_blocks",
    # Resolution
    "Resolution",
    "resolve_changes",
    "select_new_files",
    # Aggregation
    "CaptureBatch",
    "apply_capture",
    "find_session",
    "session_state",
    # State
    "RepositoryState",
    "StatePaths",
    "SessionWatcher",
    # Capture operations
    "CaptureOutcome",
    "CaptureStatus",
    "run_capture",
    "capture_repository",
    "capture_safely",
]
