"""PromptTurn model."""

from pydantic import BaseModel


class PromptTurn(BaseModel):
    prompt: str
    response: str = ""
