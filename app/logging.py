"""Process-wide logging configuration."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from app.config import settings

_CONFIGURED = False

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("goal_id", "review_id", "actor_id", "action", "recipient_id"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    handler = logging.StreamHandler()
    use_json = settings.log_json if json_output is None else json_output
    handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    root.addHandler(handler)

    # SQL echo is controlled separately; keep the engine logger quiet by default.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
