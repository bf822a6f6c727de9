"""Configuration loading utilities."""

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from .defaults import CODEX_HOME_ENV, GLOBAL_SETTINGS_DIR, SETTINGS_FILENAMES, STORE_DIR_NAME
from .settings import Settings

logger = logging.getLogger(__name__)


def strip_jsonc_comments(content: str) -> str:
    """
    Strip comments from JSONC content to convert to valid JSON.

    Handles:
    - Single-line comments: // comment
    - Multi-line comments: /* comment */

    Args:
        content: JSONC content string

    Returns:
        JSON string with comments removed
    """
    content = re.sub(r"(?<!:)//.*?$", "", content, flags=re.MULTILINE)
    content = re.sub(r"/\*.*?\*/", "", content, flags=re.DOTALL)
    return content


def load_settings_file(path: Path) -> dict[str, Any] | None:
    """
    Load a settings file from the given path.

    Supports both .json and .jsonc files with comment stripping.

    Args:
        path: Path to the settings file

    Returns:
        Parsed settings dictionary, or None if the file doesn't exist or
        isn't a JSON object
    """
    if not path.exists():
        return None

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".jsonc":
            content = strip_jsonc_comments(content)
        data = json.loads(content)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to load settings from %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring settings in %s: expected a JSON object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def _first_settings_file(directory: Path) -> dict[str, Any] | None:
    for filename in SETTINGS_FILENAMES:
        data = load_settings_file(directory / filename)
        if data is not None:
            return data
    return None


def load_settings(repo_root: Path | None = None, global_dir: Path | None = None) -> Settings:
    """
    Load settings from multiple sources with precedence.

    Looks for settings in the following order:
    1. Global: ~/.promptvc/settings.jsonc or settings.json
    2. Repository: <repo>/.promptvc/settings.jsonc or settings.json
    3. Environment: PROMPTVC_CODEX_HOME

    Later sources are merged over earlier ones.

    Args:
        repo_root: Repository root (None = global settings only)
        global_dir: Override for the global settings directory

    Returns:
        Loaded and merged Settings model
    """
    data = _first_settings_file(global_dir or GLOBAL_SETTINGS_DIR) or {}

    if repo_root is not None:
        repo_data = _first_settings_file(Path(repo_root) / STORE_DIR_NAME)
        if repo_data:
            data = merge_configs(data, repo_data)

    codex_home = os.environ.get(CODEX_HOME_ENV)
    if codex_home:
        data["codex_home"] = codex_home

    try:
        return Settings.model_validate(data)
    except ValueError as e:
        logger.warning("Invalid settings, using defaults: %s", e)
        return Settings()


@lru_cache(maxsize=8)
def get_settings(repo_root: Path | None = None) -> Settings:
    """
    Get cached settings.

    To reload, clear the cache with get_settings.cache_clear().

    Args:
        repo_root: Repository root (None = global settings only)

    Returns:
        Cached Settings model
    """
    return load_settings(repo_root)
