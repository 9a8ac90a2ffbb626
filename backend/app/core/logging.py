import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from .config import get_settings

# Attributes passed via ``extra=`` that are copied into every JSON line
STRUCTURED_FIELDS = (
    "request_id",
    "chat_query_id",
    "extract_run_id",
    "trigger",
    "step",
)

# Libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with extraction context when present."""

    def __init__(self, service: str = "source_watch_backend") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install the JSON handler on the root logger.

    Only the first call has an effect. ``level`` defaults to LOG_LEVEL.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel((level or get_settings().LOG_LEVEL).upper())
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
