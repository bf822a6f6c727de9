"""
Unified diff parser.

Turns raw ``git diff`` text into files, hunks and classified lines with old
and new line numbers, for the viewers to render.
"""

import re
from collections.abc import Sequence

from .models import DiffHunk, DiffLine, FileDiff

DIFF_GIT_PREFIX = "diff --git "
DEV_NULL = "/dev/null"
NO_NEWLINE_MARKER = "\\"

HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

# Skipped outside a hunk body; never content
METADATA_PREFIXES = (
    "index ",
    "old mode ",
    "new mode ",
    "new file mode",
    "deleted file mode",
    "similarity index",
    "dissimilarity index",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
    "---",
    "+++",
    "Binary files ",
    "GIT binary patch",
)

SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}
OCTAL_DIGITS = "01234567"


# =============================================================================
# Paths
# =============================================================================


def split_quoted(value: str) -> list[str]:
    """
    Split on unquoted spaces, dropping quotes and decoding escapes.

    Handles C-style escapes and octal byte escapes (git's quoting of
    non-ASCII names), decoded as UTF-8.
    """
    tokens: list[str] = []
    buffer = bytearray()
    in_quotes = False
    has_token = False
    i = 0

    while i < len(value):
        char = value[i]
        if char == "\\" and i + 1 < len(value):
            following = value[i + 1]
            if following in OCTAL_DIGITS:
                digits = following
                while len(digits) < 3 and i + 1 + len(digits) < len(value) and value[i + 1 + len(digits)] in OCTAL_DIGITS:
                    digits += value[i + 1 + len(digits)]
                buffer.append(int(digits, 8) & 0xFF)
                i += 1 + len(digits)
            else:
                buffer.extend(SIMPLE_ESCAPES.get(following, following).encode("utf-8"))
                i += 2
            has_token = True
            continue
        if char == '"':
            in_quotes = not in_quotes
            has_token = True
            i += 1
            continue
        if char == " " and not in_quotes:
            if has_token:
                tokens.append(buffer.decode("utf-8", errors="replace"))
                buffer = bytearray()
                has_token = False
            i += 1
            continue
        buffer.extend(char.encode("utf-8"))
        has_token = True
        i += 1

    if has_token:
        tokens.append(buffer.decode("utf-8", errors="replace"))
    return tokens


def strip_diff_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _split_symmetric(remainder: str) -> tuple[str, str] | None:
    """Split "a/<p> b/<p>" where <p> may contain spaces."""
    extra = len(remainder) - len("a/ b/")
    if extra <= 0 or extra % 2 or not remainder.startswith("a/"):
        return None
    size = extra // 2
    old, separator, new = remainder[2 : 2 + size], remainder[2 + size : 5 + size], remainder[5 + size :]
    if separator == " b/" and old == new:
        return old, new
    return None


def parse_diff_header(line: str) -> tuple[str, str] | None:
    """
    Extract (old path, new path) from a ``diff --git`` line.

    Returns:
        The paths without their a/ b/ prefixes, or None if the line isn't a
        diff header or names fewer than two paths
    """
    if not line.startswith(DIFF_GIT_PREFIX):
        return None
    remainder = line[len(DIFF_GIT_PREFIX):]

    if '"' not in remainder and "\\" not in remainder:
        symmetric = _split_symmetric(remainder)
        if symmetric is not None:
            return symmetric
        boundary = remainder.find(" b/")
        if remainder.startswith("a/") and boundary > 0:
            return strip_diff_prefix(remainder[:boundary]), strip_diff_prefix(remainder[boundary + 1 :])

    parts = split_quoted(remainder)
    if len(parts) < 2:
        return None
    return strip_diff_prefix(parts[0]), strip_diff_prefix(parts[1])


def parse_marker_path(value: str) -> str | None:
    """
    Path named by a ``---``/``+++`` or rename/copy line's argument.

    Returns:
        The unprefixed path, or None for /dev/null
    """
    value = value.strip("\n")
    if value.startswith('"'):
        parts = split_quoted(value)
        path = parts[0] if parts else ""
    else:
        path = value.split("\t", 1)[0].rstrip()
    if not path or path == DEV_NULL:
        return None
    return strip_diff_prefix(path)


def parse_hunk_header(line: str) -> tuple[int, int, int, int] | None:
    """(old start, old count, new start, new count); omitted counts are 1."""
    match = HUNK_HEADER_PATTERN.match(line)
    if not match:
        return None
    old_start, old_count, new_start, new_count = match.groups()
    return (
        int(old_start),
        int(old_count) if old_count is not None else 1,
        int(new_start),
        int(new_count) if new_count is not None else 1,
    )


# =============================================================================
# Parser
# =============================================================================


class _DiffParser:
    """Line-at-a-time parser state; a file is emitted once it is complete."""

    def __init__(self) -> None:
        self.files: list[FileDiff] = []
        self.file: FileDiff | None = None
        self.hunk: DiffHunk | None = None
        self.old_line = 0
        self.new_line = 0
        self.old_remaining = 0
        self.new_remaining = 0

    @property
    def in_body(self) -> bool:
        return self.hunk is not None and (self.old_remaining > 0 or self.new_remaining > 0)

    def flush_hunk(self) -> None:
        if self.file is not None and self.hunk is not None:
            if not any(existing is self.hunk for existing in self.file.hunks):
                self.file.hunks.append(self.hunk)
        self.hunk = None
        self.old_remaining = self.new_remaining = 0

    def flush_file(self) -> None:
        self.flush_hunk()
        if self.file is not None:
            self.files.append(self.file)
        self.file = None

    def start_file(self, old_path: str, new_path: str) -> None:
        self.flush_file()
        self.file = FileDiff(fileName=new_path, oldPath=old_path, newPath=new_path)

    def start_hunk(self, line: str) -> None:
        self.flush_hunk()
        old_start, old_count, new_start, new_count = parse_hunk_header(line) or (0, 0, 0, 0)
        self.hunk = DiffHunk(
            header=line,
            oldStart=old_start,
            oldLines=old_count,
            newStart=new_start,
            newLines=new_count,
        )
        self.old_line, self.new_line = old_start, new_start
        self.old_remaining, self.new_remaining = old_count, new_count

    def add_line(self, kind: str, content: str) -> None:
        if self.file is None or self.hunk is None:
            return
        if kind == "addition":
            self.hunk.lines.append(DiffLine(type="addition", content=content, newLineNumber=self.new_line))
            self.new_line += 1
            self.new_remaining = max(self.new_remaining - 1, 0)
            self.file.additions += 1
        elif kind == "deletion":
            self.hunk.lines.append(DiffLine(type="deletion", content=content, oldLineNumber=self.old_line))
            self.old_line += 1
            self.old_remaining = max(self.old_remaining - 1, 0)
            self.file.deletions += 1
        else:
            self.hunk.lines.append(
                DiffLine(type="context", content=content, oldLineNumber=self.old_line, newLineNumber=self.new_line)
            )
            self.old_line += 1
            self.new_line += 1
            self.old_remaining = max(self.old_remaining - 1, 0)
            self.new_remaining = max(self.new_remaining - 1, 0)

    def consume_body_line(self, line: str) -> bool:
        """Consume a line inside a hunk body; False if the body ended early."""
        if line.startswith(NO_NEWLINE_MARKER):
            return True
        prefix = line[:1]
        if prefix == "+" and self.new_remaining > 0:
            self.add_line("addition", line[1:])
        elif prefix == "-" and self.old_remaining > 0:
            self.add_line("deletion", line[1:])
        elif prefix == " " and self.old_remaining > 0 and self.new_remaining > 0:
            self.add_line("context", line[1:])
        elif line == "" and self.old_remaining > 0 and self.new_remaining > 0:
            # Blank context line whose leading space was trimmed
            self.add_line("context", "")
        else:
            self.old_remaining = self.new_remaining = 0
            return False
        return True

    def consume_metadata(self, line: str) -> None:
        if self.file is None:
            return
        if line.startswith("new file mode"):
            self.file.isNew = True
        elif line.startswith("deleted file mode"):
            self.file.isDeleted = True
        elif line.startswith(("rename from ", "copy from ")):
            path = parse_marker_path(line.split(" ", 2)[2])
            if path:
                self.file.oldPath = path
        elif line.startswith(("rename to ", "copy to ")):
            path = parse_marker_path(line.split(" ", 2)[2])
            if path:
                self.file.newPath = self.file.fileName = path
        elif line.startswith("--- "):
            path = parse_marker_path(line[4:])
            if path is None:
                self.file.isNew = True
            else:
                self.file.oldPath = path
        elif line.startswith("+++ "):
            path = parse_marker_path(line[4:])
            if path is None:
                self.file.isDeleted = True
            else:
                self.file.newPath = self.file.fileName = path
        elif line.startswith(("Binary files ", "GIT binary patch")):
            self.file.isBinary = True

    def feed(self, line: str, next_line: str | None) -> None:
        if line.startswith(DIFF_GIT_PREFIX):
            self.flush_file()
            header = parse_diff_header(line)
            if header is not None:
                self.start_file(*header)
            return

        if self.in_body and self.consume_body_line(line):
            return

        if line.startswith(NO_NEWLINE_MARKER):
            return

        # Plain unified diff: a file section opens with ---/+++ and no git header
        if (
            line.startswith("--- ")
            and next_line is not None
            and next_line.startswith("+++ ")
            and (self.file is None or self.file.hunks or self.hunk is not None)
        ):
            old_path = parse_marker_path(line[4:])
            new_path = parse_marker_path(next_line[4:])
            self.start_file(old_path or new_path or "", new_path or old_path or "")
            self.consume_metadata(line)
            return

        if self.file is None:
            return

        if line.startswith("@@"):
            self.start_hunk(line)
            return

        if line.startswith(METADATA_PREFIXES):
            self.consume_metadata(line)
            return

        # Lines past the declared hunk size; accept them rather than lose content
        if self.hunk is not None and line[:1] in ("+", "-", " ") and line:
            kind = {"+": "addition", "-": "deletion", " ": "context"}[line[0]]
            self.add_line(kind, line[1:])


def parse_diff(diff_text: str | None) -> list[FileDiff]:
    """
    Parse unified diff text into structured file diffs.

    Line numbers start from each hunk header's declared offsets and advance
    independently for the old and new side. Empty or whitespace-only input
    gives an empty list; unparseable fragments are skipped.

    Args:
        diff_text: Raw output of ``git diff`` (or any unified diff)

    Returns:
        One FileDiff per file, in input order
    """
    if not diff_text or not diff_text.strip():
        return []

    parser = _DiffParser()
    lines = diff_text.split("\n")
    for index, line in enumerate(lines):
        next_line = lines[index + 1] if index + 1 < len(lines) else None
        parser.feed(line, next_line)
    parser.flush_file()
    return parser.files


def diff_stats(files: Sequence[FileDiff]) -> tuple[int, int]:
    """Total (additions, deletions) over ``files``."""
    return sum(f.additions for f in files), sum(f.deletions for f in files)
