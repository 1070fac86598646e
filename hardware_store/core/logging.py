# hardware_store/core/logging.py
"""
Logging setup for the API process.

configure_logging() is called once from main.py. With LOG_JSON=true each
record is emitted as one JSON object per line.
"""
import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "order_number",
    "from_status",
    "to_status",
    "actor",
    "provider",
    "phone",
)

_status_logger = logging.getLogger("hardware_store.order_status")


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())


def log_order_status(
    order_number: str,
    from_status: str | None,
    to_status: str,
    actor: str | None = None,
) -> None:
    """
    Audit-style log line for every status change, in addition to the
    persisted ledger event.
    """
    _status_logger.info(
        "Order %s: %s -> %s (by %s)",
        order_number,
        from_status or "-",
        to_status,
        actor or "customer",
        extra={
            "order_number": order_number,
            "from_status": from_status,
            "to_status": to_status,
            "actor": actor,
        },
    )
