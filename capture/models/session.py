"""AssistantSession model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .prompt_change import PromptChange
from .session_state import SessionState


class AssistantSession(BaseModel):
    # Viewers add their own keys (hidden, flagged, tags...); keep them on rewrite.
    model_config = ConfigDict(extra="allow")

    id: str
    provider: str = "codex"
    repoRoot: str
    branch: str = ""
    preHash: str = ""
    postHash: str | None = None
    prompt: str = ""
    responseSnippet: str = ""
    files: list[str] = Field(default_factory=list)
    diff: str = ""
    createdAt: str
    updatedAt: str | None = None
    endedAt: str | None = None
    mode: Literal["oneshot", "interactive"] = "interactive"
    autoTagged: bool = True
    inProgress: bool = Field(
        default=True,
        description="False once a newer transcript has superseded this session"
    )
    perPromptChanges: list[PromptChange] = Field(default_factory=list)

    @property
    def state(self) -> SessionState:
        return SessionState.IN_PROGRESS if self.inProgress else SessionState.ENDED
