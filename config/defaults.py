"""Default configuration values."""

from pathlib import Path

DEFAULT_PROVIDER = "codex"

# Per-repository store directory, relative to the repository root
STORE_DIR_NAME = ".promptvc"

DEFAULT_CODEX_HOME = Path.home() / ".codex"

# User-wide settings, overridden by <repo>/.promptvc/settings.json
GLOBAL_SETTINGS_DIR = Path.home() / ".promptvc"
SETTINGS_FILENAMES = ("settings.jsonc", "settings.json")

# Prompts containing any of these are skill-catalogue boilerplate, not user input
DEFAULT_DROP_PROMPT_MARKERS = [
    "These skills are discovered at startup",
]

# Environment variable names
CODEX_HOME_ENV = "PROMPTVC_CODEX_HOME"
