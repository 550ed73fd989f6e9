"""Structured Logging — one JSON line per event, keyed by card and assignment.

Invariants:
    - Every line carries timestamp, level, logger and message
    - card_id, uid, assignment_id, action, error_code and path appear only when set
    - setup_logging installs exactly one handler of its own, however often it runs

Design Decisions:
    - stdlib logging with a small JSON formatter, no logging dependency
    - aiosqlite is capped at WARNING: it logs every cursor operation at DEBUG
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "card_id", "uid", "assignment_id", "action", "error_code", "path",
)
_QUIET_LOGGERS = ("aiosqlite",)


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the service handler on the root logger, replacing an earlier one."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_cardledger", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._cardledger = True
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
