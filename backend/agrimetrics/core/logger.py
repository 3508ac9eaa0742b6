# backend/agrimetrics/core/logger.py

import logging
import json
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime

from agrimetrics.core.config import settings

LOG_DIR = settings.LOG_DIR
os.makedirs(LOG_DIR, exist_ok=True)

# extra={...} keys copied into the JSON line when present on the record
EXTRA_FIELDS = (
    "request_id",
    "user_id",
    "organization_id",
    "path",
    "method",
    "status_code",
    "duration_ms",
    "module_name",
    "cache_key",
    "job_id",
    "error",
)


def json_formatter(record):
    log = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "level": record.levelname,
        "service": settings.SERVICE_NAME,
        "message": record.getMessage(),
    }

    for field in EXTRA_FIELDS:
        if hasattr(record, field):
            log[field] = getattr(record, field)

    if record.exc_info:
        log["exception"] = logging.Formatter().formatException(record.exc_info)

    return json.dumps(log, default=str)


class JSONFormatter(logging.Formatter):
    def format(self, record):
        return json_formatter(record)


logger = logging.getLogger("agrimetrics")
logger.setLevel(logging.INFO)

json_f = JSONFormatter()

file_handler = RotatingFileHandler(
    os.path.join(LOG_DIR, "app.json.log"),
    maxBytes=5 * 1024 * 1024,
    backupCount=5
)
file_handler.setLevel(logging.INFO)
file_handler.setFormatter(json_f)

console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(json_f)

if not logger.handlers:
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Child logger sharing the JSON handlers, e.g. ``agrimetrics.analytics``."""
    return logger.getChild(name)
