"""
Configuration module for the capture engine.

Exports the settings model and the functions that load it.
"""

from .defaults import DEFAULT_CODEX_HOME, DEFAULT_PROVIDER
from .loader import get_settings, load_settings, load_settings_file, merge_configs, strip_jsonc_comments
from .settings import ChangeScope, SessionDiffPolicy, Settings

__all__ = [
    # Constants
    "DEFAULT_CODEX_HOME",
    "DEFAULT_PROVIDER",
    # Settings models
    "Settings",
    "ChangeScope",
    "SessionDiffPolicy",
    # Loader functions
    "load_settings",
    "get_settings",
    "load_settings_file",
    "merge_configs",
    "strip_jsonc_comments",
]
