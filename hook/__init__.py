"""
Notify hook run by the coding assistant after each turn.
"""

from .logging_config import log_timing, setup_logging
from .notify import payload_string, read_payload, resolve_repo_root, run_hook

__all__ = [
    "log_timing",
    "payload_string",
    "read_payload",
    "resolve_repo_root",
    "run_hook",
    "setup_logging",
]
