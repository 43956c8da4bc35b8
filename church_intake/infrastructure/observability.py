"""Structured Logging — one JSON object per log line.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Intake context passed through `extra=` (registration_id, token_id, actor_id,
      error_code, risk_level, audit_action, path) is copied to the top level when set
    - LOG_FORMAT=text switches to a plain formatter for local development

Design Decisions:
    - stdlib logging with a custom Formatter; configured once from the FastAPI lifespan
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS: tuple[str, ...] = (
    "registration_id", "token_id", "actor_id", "error_code",
    "risk_level", "audit_action", "path",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT),
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
