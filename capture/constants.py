"""
Constants for the capture engine.

On-disk layout of the per-repository store and the markers used to
recognize injected instruction boilerplate in transcripts.
"""

import re

from config.defaults import STORE_DIR_NAME  # noqa: F401

# Per-repository store layout
SESSIONS_FILENAME = "sessions.json"
PROMPT_CURSOR_FILENAME = "last_prompt_count"
SESSION_KEY_FILENAME = "last_session_file"
FINGERPRINT_FILENAME = "last_git_state.json"

# Transcript layout under the assistant's home directory
ROLLOUT_GLOB = "rollout-*.jsonl"
SESSIONS_SUBDIR = "sessions"
HISTORY_FILENAME = "history.jsonl"
TRANSCRIPT_SUFFIX = ".jsonl"

# Transcript record tags
RESPONSE_ITEM_TYPE = "response_item"
SESSION_META_TYPE = "session_meta"

# Boilerplate stripped from user prompts, applied in order
AGENTS_HEADING_PATTERN = re.compile(r"^# AGENTS\.md instructions[^\n]*(?:\n+|$)", re.IGNORECASE)
DELIMITED_BLOCK_PATTERNS = (
    re.compile(r"<INSTRUCTIONS>[\s\S]*?</INSTRUCTIONS>\s*"),
    re.compile(r"<environment_context>[\s\S]*?</environment_context>\s*"),
)
# Unterminated blocks run to the end of the prompt
UNTERMINATED_BLOCK_PATTERNS = (
    re.compile(r"<INSTRUCTIONS>[\s\S]*$"),
    re.compile(r"<environment_context>[\s\S]*$"),
)

RESPONSE_SEPARATOR = "\n\n"
