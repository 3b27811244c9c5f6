"""
JSON logs on stdout, one object per line

Any `extra={...}` passed to a logger call is merged into the object; the
current request's trace_id is added automatically.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Set per request by TraceIDMiddleware
trace_id_context: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

# Attributes every LogRecord has; anything else came in through `extra`
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# RequestLoggingMiddleware already writes one line per request
_QUIET_LOGGERS = ("uvicorn.access",)


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        trace_id = trace_id_context.get() or getattr(record, "trace_id", None)
        if trace_id:
            entry["trace_id"] = trace_id

        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and key not in entry:
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Decimal amounts, UUIDs and datetimes render as strings
        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Install the JSON handler on the root logger (idempotent)"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
