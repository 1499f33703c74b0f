"""
logging_config.py - Centralized JSON Logging Configuration

PURPOSE:
    Provides structured JSON logging for the storefront gateway with
    timezone-aware timestamps, correlation tracking, and service context.

JSON LOG FIELDS:
    - timestamp: ISO 8601 format in the configured timezone
    - level: Log level (INFO, ERROR, WARNING, DEBUG, CRITICAL)
    - logger: Module where the log originated (e.g., "storefront_gateway.payments.routes")
    - message: The actual log message
    - service_name: Name of the service (injected automatically)
    - correlation_id: Optional tracing ID (order id, webhook event id)
    - event_type: Optional webhook event type being processed
    - exception: Full stack trace (only when exc_info is set)

USAGE:
    from storefront_gateway.shared.logging_config import setup_logging
    setup_logging("storefront-gateway", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info(
        "Payment submitted",
        extra={"correlation_id": order_id},
    )

EXAMPLE JSON OUTPUT:
    {
        "timestamp": "2026-02-23T22:48:51.001014-08:00",
        "level": "INFO",
        "logger": "storefront_gateway.webhooks.reconciler",
        "message": "Payment completed for order 8dKc...",
        "service_name": "storefront-gateway",
        "correlation_id": "0d1f0c3e-...",
        "event_type": "payment.updated"
    }
"""

import json
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo
from typing import Any, Dict

DEFAULT_TIMEZONE = "America/Los_Angeles"


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs JSON logs with correlation context."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__()
        self.tz = ZoneInfo(tz_name)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(self.tz).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id
        if hasattr(record, "service_name"):
            log_data["service_name"] = record.service_name
        if hasattr(record, "event_type"):
            log_data["event_type"] = record.event_type

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceFilter(logging.Filter):
    """Stamps every record with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(service_name: str, level: str = "INFO", tz_name: str = DEFAULT_TIMEZONE) -> None:
    """Setup JSON logging for the gateway.

    Safe to call more than once: the JSON handler is installed a single time
    and later calls only adjust the level.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler.formatter, JsonFormatter):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(tz_name))
    # Filter on the handler so records from every logger get the service name
    handler.addFilter(ServiceFilter(service_name))
    root.addHandler(handler)
