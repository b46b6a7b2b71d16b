"""Structured Logging — one JSON object per line, keyed by exchange and student.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Domain extras (exchange_id, student_id, action, ...) appear only when set,
      always as strings so UUIDs and enums serialize
    - setup_logging is idempotent: calling it again replaces the handler it installed

Design Decisions:
    - sqlalchemy.engine pinned to WARNING: statement echo is opt-in via LOG_LEVEL=DEBUG
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "exchange_id", "student_id", "product_id", "action",
    "notification_type", "error_code", "path",
)

_HANDLER_NAME = "campus_swap"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: str(record.__dict__[key])
            for key in _EXTRA_KEYS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)

    numeric = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if numeric <= logging.DEBUG else logging.WARNING,
    )
