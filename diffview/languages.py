"""File extension to syntax-highlighting language mapping."""

from pathlib import PurePosixPath

LANGUAGE_BY_EXTENSION = {
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "pyi": "python",
    "rb": "ruby",
    "java": "java",
    "cpp": "cpp",
    "cc": "cpp",
    "hpp": "cpp",
    "c": "c",
    "h": "c",
    "cs": "csharp",
    "php": "php",
    "go": "go",
    "rs": "rust",
    "swift": "swift",
    "kt": "kotlin",
    "scala": "scala",
    "sh": "bash",
    "bash": "bash",
    "zsh": "bash",
    "json": "json",
    "xml": "xml",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "sql": "sql",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "md": "markdown",
    "txt": "plaintext",
}

DEFAULT_LANGUAGE = "plaintext"


def language_for_filename(filename: str) -> str:
    """Highlighter language for ``filename``, plaintext when unknown."""
    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    return LANGUAGE_BY_EXTENSION.get(suffix, DEFAULT_LANGUAGE)
