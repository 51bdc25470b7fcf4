"""
Codec - JSON Text Boundary

Pure functions between JSON text and plain nested values:
- parse_json: text -> value (raises DocumentParseError with line/column)
- format_json: value -> indented text
- minify_json: value -> compact text

Non-finite literals (NaN, Infinity, -Infinity) and numbers that overflow a
float (1e400) are rejected on the way in and can never be produced on the
way out.
"""

from __future__ import annotations

import json
import math
from typing import Any

import structlog

from arbor.exceptions import DocumentParseError

logger = structlog.get_logger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        # 1e400 is valid JSON syntax but overflows to inf
        raise ValueError(f"Number out of range: {text}")
    return value


def parse_json(text: str) -> Any:
    """
    Parse JSON text into a plain nested value.

    Args:
        text: Raw JSON text.

    Returns:
        dict / list / str / int / float / bool / None.

    Raises:
        DocumentParseError: With a 1-based line and column when derivable.
    """
    try:
        return json.loads(
            text,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except json.JSONDecodeError as e:
        logger.debug("parse_failed", error=e.msg, line=e.lineno, column=e.colno)
        raise DocumentParseError(e.msg, line=e.lineno, column=e.colno) from e
    except ValueError as e:
        logger.debug("parse_failed", error=str(e))
        raise DocumentParseError(str(e)) from e


def format_json(value: Any, indent: int = 2) -> str:
    """Serialize a value with the given indent width."""
    return json.dumps(value, indent=indent, ensure_ascii=False, allow_nan=False)


def minify_json(value: Any) -> str:
    """Serialize a value without insignificant whitespace."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
