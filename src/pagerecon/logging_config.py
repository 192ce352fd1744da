"""JSON line logging for the service and the ingestion audit trail."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import get_settings

AUDIT_LOGGER_NAME = "pagerecon.ingest.audit"
AUDIT_LOG_FILE = "ingest_audit.log"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JSONLineFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Dict messages (the audit records) are merged at the top level with their
    ``event`` key leading; plain messages go under ``message``. Fields passed
    through ``extra`` such as ``document_id`` or ``page`` are appended as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            fields = dict(record.msg)
            if "event" in fields:
                payload["event"] = fields.pop("event")
            payload.update(fields)
        else:
            payload["message"] = record.getMessage()

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(log_dir: str | Path | None = None, level: str | None = None) -> None:
    """Send JSON lines to stderr and audit records to ``<log_dir>/ingest_audit.log``.

    ``level`` defaults to the ``PAGERECON_LOG_LEVEL`` setting.
    """

    log_dir = Path(log_dir or "logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    root_level = (level or get_settings().log_level).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json_lines": {"()": JSONLineFormatter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json_lines",
                },
                "ingest_audit": {
                    "class": "logging.FileHandler",
                    "filename": str(log_dir / AUDIT_LOG_FILE),
                    "mode": "a",
                    "encoding": "utf-8",
                    "formatter": "json_lines",
                },
            },
            "root": {"level": root_level, "handlers": ["console"]},
            "loggers": {
                AUDIT_LOGGER_NAME: {
                    "level": "INFO",
                    "handlers": ["ingest_audit"],
                    "propagate": False,
                }
            },
        }
    )


def get_ingest_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
