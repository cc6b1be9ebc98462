import json
import logging
import time
from collections import Counter, deque
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Libraries that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx", "passlib")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line for the log shipper.

    Fields passed through `extra=` (request_id, booking ids, error codes)
    become top-level keys; values json cannot encode are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in entry:
                continue
            entry[key] = value if _json_safe(value) else str(value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


def _json_safe(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def setup_logging(log_level: str = "INFO", log_format: str = "text"):
    """
    Route all logging to stderr through a single handler.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: "json" in production, "text" while developing
    """
    handler = logging.StreamHandler()
    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging ready ({log_level}, {log_format})")


class ErrorTracker:
    """Counts failures by type and keeps the most recent ones in memory"""

    def __init__(self, keep: int = 100):
        self.counts: Counter = Counter()
        self.recent: deque = deque(maxlen=keep)

    def track_error(
        self, error_type: str, error_message: str, context: Optional[Dict[str, Any]] = None
    ):
        self.counts[error_type] += 1
        self.recent.append(
            {
                "at": time.time(),
                "type": error_type,
                "message": error_message,
                "context": context or {},
            }
        )
        logger.warning(
            f"{error_type} seen {self.counts[error_type]} time(s): {error_message}",
            extra={"error_type": error_type, "context": context or {}},
        )

    def summary(self) -> Dict[str, Any]:
        return {"total": sum(self.counts.values()), "by_type": dict(self.counts)}


error_tracker = ErrorTracker()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_business_event(
    event: str,
    entity_type: str,
    entity_id: Optional[int],
    details: Optional[Dict[str, Any]] = None,
):
    """
    Audit line for a studio event: booking_created, booking_cancelled,
    attendance_marked, subscription_sold, lead_created and so on.
    """
    logger.info(
        f"{event} {entity_type}#{entity_id if entity_id is not None else '-'}",
        extra={
            "event": event,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "details": details or {},
            "category": "business_event",
        },
    )
