# app/core/logging.py
import logging
import sys
from datetime import datetime
from typing import Dict, Any
from pythonjsonlogger import jsonlogger

from app.core.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.utcnow().isoformat()

        if record.name:
            log_record["logger"] = record.name

        log_record["level"] = record.levelname

        # Tenant / actor / job context passed through `extra=`
        if hasattr(record, "organization_id"):
            log_record["organization_id"] = str(record.organization_id)

        if hasattr(record, "user_id"):
            log_record["user_id"] = str(record.user_id)

        if hasattr(record, "job"):
            log_record["job"] = record.job


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging for the service and the `app` package"""
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(logger)s %(message)s"
    )

    for name in ("parctrack", "app"):
        configured = logging.getLogger(name)
        configured.setLevel(level)
        configured.propagate = False

        if not configured.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            configured.addHandler(console_handler)

    return logging.getLogger("parctrack")


# Initialize logger
logger = setup_logging(settings.LOG_LEVEL)
