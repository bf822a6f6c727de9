"""
Domain models for the capture engine.

These are the records persisted in the per-repository session store and the
intermediate values passed between the engine's stages.
"""

from .prompt_change import PromptChange
from .prompt_turn import PromptTurn
from .session import AssistantSession
from .session_state import SessionState
from .transcript_source import TranscriptSource
from .utils import utc_timestamp

__all__ = [
    # Utils
    "utc_timestamp",
    # Transcript models
    "PromptTurn",
    "TranscriptSource",
    # Session models
    "PromptChange",
    "AssistantSession",
    "SessionState",
]
