"""Logging setup for the guesser.

Package modules log short event names (``move_selected``,
``search_complete``) with their details passed as ``extra`` fields;
:class:`EventFormatter` renders those fields so they are not lost on the
console.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TelemetryConfig

PACKAGE_LOGGER = "battleship_guesser"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_STANDARD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_OTLP_HANDLER: logging.Handler | None = None


class EventFormatter(logging.Formatter):
    """Appends a record's ``extra`` fields as sorted ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {
            key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRIBUTES
        }
        if not fields:
            return line
        return line + " | " + " ".join(f"{key}={fields[key]}" for key in sorted(fields))


def configure_console_logging(verbose: bool = False) -> logging.Handler:
    """Send package log records to stderr; DEBUG when ``verbose``, else warnings only."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(EventFormatter(LOG_FORMAT))
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        if isinstance(existing.formatter, EventFormatter):
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler


def init_logging(config: TelemetryConfig) -> logging.Handler | None:
    """Forward package log records at INFO and above over OTLP.

    Returns the installed handler, or None when the OpenTelemetry logs SDK
    is unavailable. Calling it again keeps the first handler.
    """
    global _OTLP_HANDLER
    if _OTLP_HANDLER is not None:
        return _OTLP_HANDLER
    try:
        from opentelemetry._logs import set_logger_provider
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
        from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
        from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
        from opentelemetry.sdk.resources import Resource
    except ImportError:  # pragma: no cover
        return None

    provider = LoggerProvider(resource=Resource.create(config.resource_attributes_with_service()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)

    handler = LoggingHandler(level=logging.INFO, logger_provider=provider)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)
    _OTLP_HANDLER = handler
    return handler
