"""
Notify hook: the assistant's trigger path into the capture engine.

The assistant runs the hook after each turn, handing over a JSON payload
(as the last command-line argument or on stdin). The hook works out which
repository and transcript the turn belongs to and runs one capture. It
never fails the assistant: every error is logged and the exit status is 0.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from capture import CaptureStatus, capture_safely
from capture.exceptions import CaptureError, RepositoryUnavailableError
from capture.transcripts import find_latest_rollout, transcript_cwd
from config import get_settings
from vcs import GitRepository

from .logging_config import log_timing

logger = logging.getLogger(__name__)

# Payload keys naming the working directory
CWD_KEYS = ("cwd", "workdir", "repo_root", "repoRoot")
# Payload keys naming the transcript file
TRANSCRIPT_KEYS = ("session_file", "sessionFile", "session_path", "sessionPath", "session", "file")

EXIT_OK = 0


# =============================================================================
# Payload
# =============================================================================


def _parse_payload(raw: str) -> Optional[dict[str, Any]]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def read_payload(argv: Sequence[str], stdin: Optional[TextIO] = None) -> Optional[dict[str, Any]]:
    """
    Read the hook payload.

    Args:
        argv: Command-line arguments without the program name
        stdin: Stream to read when no argument carries the payload;
            skipped when it is a terminal

    Returns:
        The payload object, or None when there is none
    """
    if argv:
        payload = _parse_payload(argv[-1])
        if payload is not None:
            return payload

    if stdin is None or stdin.isatty():
        return None
    try:
        return _parse_payload(stdin.read())
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Could not read payload from stdin: %s", e)
        return None


def payload_string(payload: Optional[dict[str, Any]], keys: Sequence[str]) -> str:
    """First non-empty string among ``keys``, top level first, then under ``payload``."""
    if not payload:
        return ""
    nested = payload.get("payload")
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(nested, dict):
            value = nested.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


# =============================================================================
# Repository resolution
# =============================================================================


def _repo_root_for(path: Optional[str]) -> Optional[Path]:
    if not path or not os.path.isdir(path):
        return None
    try:
        return GitRepository.discover(path).root
    except RepositoryUnavailableError:
        return None


def resolve_repo_root(
    hook_cwd: str,
    payload_cwd: str = "",
    codex_home: Optional[Path] = None,
) -> Optional[Path]:
    """
    Work out which repository the turn belongs to.

    Tries the hook's own working directory, then the payload's, then the
    working directory recorded in the newest transcript.

    Returns:
        Repository root, or None when no candidate is inside a repository
    """
    root = _repo_root_for(hook_cwd)
    if root is not None:
        logger.debug("Resolved repo from hook cwd: %s", root)
        return root

    root = _repo_root_for(payload_cwd)
    if root is not None:
        logger.debug("Resolved repo from payload cwd: %s", root)
        return root

    if codex_home is not None:
        latest = find_latest_rollout(codex_home)
        root = _repo_root_for(transcript_cwd(latest)) if latest is not None else None
        if root is not None:
            logger.debug("Resolved repo from transcript cwd: %s", root)
            return root

    return None


# =============================================================================
# Entry point
# =============================================================================


def run_hook(argv: Optional[Sequence[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """
    Run one capture for the turn that triggered the hook.

    Args:
        argv: Command-line arguments without the program name
            (default: sys.argv[1:])
        stdin: Payload stream (default: sys.stdin)

    Returns:
        Exit status; always 0
    """
    try:
        argv = sys.argv[1:] if argv is None else argv
        payload = read_payload(argv, sys.stdin if stdin is None else stdin)
        if payload is None:
            logger.debug("No hook payload")

        payload_cwd = payload_string(payload, CWD_KEYS)
        transcript_path = payload_string(payload, TRANSCRIPT_KEYS) or None

        global_settings = get_settings()
        repo_root = resolve_repo_root(os.getcwd(), payload_cwd, global_settings.codex_home)
        if repo_root is None:
            logger.debug("Not inside a git repository, nothing to capture")
            return EXIT_OK

        with log_timing(logger, "Capture"):
            outcome = capture_safely(repo_root, transcript_path)

        if outcome.status == CaptureStatus.CAPTURED:
            logger.info(
                "Captured %d prompt(s) for session %s (%d file(s))",
                outcome.prompts,
                outcome.session_id,
                len(outcome.files),
            )
        else:
            logger.debug("Capture finished: %s %s", outcome.status.value, outcome.reason)
    except (CaptureError, RepositoryUnavailableError) as e:
        logger.debug("Hook skipped: %s", e)
    except Exception as e:
        logger.warning("Hook failed unexpectedly: %s", e, exc_info=True)
    return EXIT_OK
