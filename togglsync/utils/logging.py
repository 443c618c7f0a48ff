"""
Logging configuration with optional JSON output.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict

from togglsync.config import settings

EXTRA_FIELDS = ("method", "url", "status", "operation", "workspace_id")


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "service": "toggl-sync",
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_obj[field] = getattr(record, field)

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


def configure_logging(level: int = logging.INFO, use_json: bool | None = None) -> None:
    """
    Configure logging with optional JSON format.
    Set LOG_JSON=true in env to enable JSON logging.
    """
    if use_json is None:
        use_json = settings.LOG_JSON

    handler = logging.StreamHandler(sys.stdout)

    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )
