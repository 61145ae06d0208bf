"""Read typed values from DAOSTATE_* environment variables.

Unset variables read as None. A variable that is set but cannot be parsed is
logged and ignored, so a stray shell export never prevents startup; range
checks are left to the configuration schema.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TypeVar

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_BOOL_WORDS = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def get_env_str(name: str) -> str | None:
    """Return the variable's value, treating an empty string as unset."""
    return os.environ.get(name) or None


def _parse_env(name: str, parse: Callable[[str], _T], kind: str) -> _T | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    try:
        return parse(raw.strip())
    except ValueError:
        _logger.warning("Ignoring %s=%r: not a valid %s", name, raw, kind)
        return None


def _parse_bool(raw: str) -> bool:
    try:
        return _BOOL_WORDS[raw.lower()]
    except KeyError:
        raise ValueError(raw) from None


def get_env_int(name: str) -> int | None:
    return _parse_env(name, int, "integer")


def get_env_float(name: str) -> float | None:
    return _parse_env(name, float, "number")


def get_env_bool(name: str) -> bool | None:
    """Parse 1/0, true/false, yes/no or on/off (case-insensitive)."""
    return _parse_env(name, _parse_bool, "boolean")
