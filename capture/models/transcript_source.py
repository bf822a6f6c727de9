"""TranscriptSource model."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class TranscriptSource(BaseModel):
    path: Path
    kind: Literal["rollout", "history"] = "rollout"
    session_id: str = Field(description="Identifier stored on the session record")
    key: str = Field(description="Identity the prompt cursor is tracked against")
