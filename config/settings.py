"""Settings model for the capture engine."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .defaults import DEFAULT_CODEX_HOME, DEFAULT_DROP_PROMPT_MARKERS, DEFAULT_PROVIDER


class ChangeScope(str, Enum):
    """Which differing files a capture attributes to its new prompts."""

    INCREMENTAL = "incremental"
    WORKING_TREE = "working_tree"


class SessionDiffPolicy(str, Enum):
    """What a session record's ``diff`` holds after each capture."""

    LATEST = "latest"
    CUMULATIVE = "cumulative"


class Settings(BaseModel):
    """Main settings model. Unknown keys in settings files are ignored."""

    change_scope: ChangeScope = Field(
        default=ChangeScope.INCREMENTAL,
        description="incremental: only files whose content changed since the last capture",
    )
    session_diff: SessionDiffPolicy = Field(
        default=SessionDiffPolicy.LATEST,
        description="latest: scoped diff of the most recent capture; cumulative: full working-tree diff",
    )
    redact_secrets: bool = Field(
        default=True,
        description="Redact tokens, keys and passwords from prompts, responses and diffs",
    )
    drop_prompt_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DROP_PROMPT_MARKERS),
        description="Prompts containing any of these substrings are dropped",
    )
    codex_home: Path = Field(
        default=DEFAULT_CODEX_HOME,
        description="Directory holding the assistant's sessions/ and history.jsonl",
    )
    provider: str = Field(
        default=DEFAULT_PROVIDER,
        description="Provider tag stored on captured sessions",
    )
