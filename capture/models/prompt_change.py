"""PromptChange model."""

from pydantic import BaseModel, Field


class PromptChange(BaseModel):
    """One captured increment: a prompt plus the file delta attributed to it."""

    prompt: str
    response: str | None = None
    timestamp: str
    hash: str = Field(description="Repository HEAD at capture time")
    files: list[str] = Field(default_factory=list)
    diff: str = ""
