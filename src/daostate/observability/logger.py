"""Structured logging setup for daostate.

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves. Applications (and the CLI) call :func:`configure_logging`
once to attach a console handler to the ``daostate`` logger, either with
plain text or with one JSON object per line.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from daostate.config.runtime import ObservabilityConfig

ROOT_LOGGER_NAME = "daostate"

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def configure_logging(
    config: ObservabilityConfig | None = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """Install a single console handler on the ``daostate`` logger.

    Calling this again replaces the handler installed by a previous call,
    so repeated configuration never duplicates output.

    Args:
        config: Level and format settings (defaults to ObservabilityConfig()).
        handler: Handler to use instead of a new StreamHandler.

    Returns:
        The configured ``daostate`` logger.
    """
    config = config or ObservabilityConfig()
    root = logging.getLogger(ROOT_LOGGER_NAME)

    for existing in list(root.handlers):
        if getattr(existing, "_daostate_handler", False):
            root.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler._daostate_handler = True  # type: ignore[attr-defined]
    if config.json_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    root.addHandler(handler)
    root.setLevel(config.log_level.upper())
    return root
