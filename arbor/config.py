"""
Configuration for Arbor.

Defaults live on EditorConfig. load_config() reads a .env file (if any)
and then applies ARBOR_* environment variable overrides:

    ARBOR_HISTORY_LIMIT   undo/redo capacity (default 50)
    ARBOR_INDENT          pretty-print indent width (default 2)
    ARBOR_OUTPUT_MODE     "pretty" or "minified"
    ARBOR_AUTO_PARSE      parse on every raw text change
    ARBOR_AUTO_SAVE       persist the session after each command
    ARBOR_STORE_PATH      SQLite file for sessions and snippets
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog
from dotenv import find_dotenv, load_dotenv

logger = structlog.get_logger(__name__)

OUTPUT_MODES = ("pretty", "minified")


@dataclass
class EditorConfig:
    """Configuration for the editor engine and its storage."""

    history_limit: int = 50
    indent: int = 2
    output_mode: str = "pretty"
    auto_parse: bool = False
    auto_save: bool = True
    store_path: str = "~/.arbor/arbor.db"

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_positive_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise ValueError("must not be negative")
    return number


def _parse_output_mode(value: str) -> str:
    mode = value.strip().lower()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"expected one of {OUTPUT_MODES}")
    return mode


_ENV_OVERRIDES = {
    "ARBOR_HISTORY_LIMIT": ("history_limit", _parse_positive_int),
    "ARBOR_INDENT": ("indent", _parse_positive_int),
    "ARBOR_OUTPUT_MODE": ("output_mode", _parse_output_mode),
    "ARBOR_AUTO_PARSE": ("auto_parse", _parse_bool),
    "ARBOR_AUTO_SAVE": ("auto_save", _parse_bool),
    "ARBOR_STORE_PATH": ("store_path", str),
}


def load_config(env_file: str | Path | None = None) -> EditorConfig:
    """
    Build the configuration from defaults, .env and the environment.

    Args:
        env_file: Explicit .env path. Defaults to searching from the
                  working directory upwards.

    Returns:
        EditorConfig with overrides applied. Malformed values are logged
        and the default is kept.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    config = EditorConfig()
    for env_key, (attr, convert) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw is None:
            continue
        try:
            setattr(config, attr, convert(raw))
        except ValueError as e:
            logger.warning("invalid_config_value", key=env_key, value=raw, error=str(e))

    return config
