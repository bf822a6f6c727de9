"""Structured unified-diff models."""

from typing import Literal

from pydantic import BaseModel, Field


class DiffLine(BaseModel):
    type: Literal["addition", "deletion", "context"]
    content: str
    oldLineNumber: int | None = None
    newLineNumber: int | None = None


class DiffHunk(BaseModel):
    header: str = Field(description='Raw hunk header, e.g. "@@ -1,5 +1,6 @@ def main():"')
    oldStart: int = 0
    oldLines: int = 0
    newStart: int = 0
    newLines: int = 0
    lines: list[DiffLine] = Field(default_factory=list)


class FileDiff(BaseModel):
    fileName: str
    oldPath: str
    newPath: str
    hunks: list[DiffHunk] = Field(default_factory=list)
    additions: int = 0
    deletions: int = 0
    isNew: bool = False
    isDeleted: bool = False
    isBinary: bool = False
