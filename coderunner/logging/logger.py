# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for coderunner.

The evaluator and the CLI report everything as one JSON object per line:
timestamp, level, logger name, message, plus whatever context the call
attached with `extra=` (unit name, stage, diagnostics and so on). Code
fragments are user code and may print whatever they like; coderunner itself
never prints.

    {"ts": "2026-...", "level": "INFO", "module": "coderunner.cli.run", "msg": "Evaluation result", "result": "30"}

`get_logger` is the only way to create loggers. It attaches a stdout handler
and, when asked, a file handler, both with JsonFormatter.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Whatever a bare LogRecord carries is bookkeeping. Anything beyond that came
# in through `extra=` and belongs in the JSON payload.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class JsonFormatter(logging.Formatter):
    """
    Renders a record as a single JSON line.

    Fixed fields are `ts` (UTC, ISO 8601), `level`, `module` (the logger
    name) and `msg`. Context from `extra=` is merged in next to them, and an
    attached exception is rendered into `exc`. Values JSON can't represent
    are written as their str().
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _resolve_log_level(level_name: str) -> int:
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(_VALID_LOG_LEVELS)}"
        )
    return getattr(logging, upper)


def _json_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def _has_file_handler(handlers: list[logging.Handler], log_file: Path) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in handlers
    )


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Return the JSON logger called `name`, configured at `log_level`.

    Calls for the same name share one stdout handler and one file handler
    per path, so asking twice never duplicates output. A later call moves
    the level of those handlers and adds a file handler for a `log_file` not
    seen before. Handlers someone else attached are left alone. The log
    file's parent directory is created when missing.

    Raises:
        ValueError: If `log_level` isn't one of DEBUG, INFO, WARNING, ERROR, CRITICAL.
    """
    level = _resolve_log_level(log_level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    ours = [handler for handler in logger.handlers if isinstance(handler.formatter, JsonFormatter)]
    for handler in ours:
        handler.setLevel(level)

    if not any(not isinstance(handler, logging.FileHandler) for handler in ours):
        logger.addHandler(_json_handler(logging.StreamHandler(stream=sys.stdout), level))

    if log_file is not None and not _has_file_handler(ours, log_file):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _json_handler(logging.FileHandler(str(log_file), encoding="utf-8"), level)
        )

    # Output goes only through our handlers, never the root logger's.
    logger.propagate = False
    return logger
