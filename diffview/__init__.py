"""
Structured views of unified diffs for session viewers.
"""

from .languages import DEFAULT_LANGUAGE, language_for_filename
from .models import DiffHunk, DiffLine, FileDiff
from .parser import diff_stats, parse_diff, parse_diff_header, parse_hunk_header

__all__ = [
    "DEFAULT_LANGUAGE",
    "DiffHunk",
    "DiffLine",
    "FileDiff",
    "diff_stats",
    "language_for_filename",
    "parse_diff",
    "parse_diff_header",
    "parse_hunk_header",
]
