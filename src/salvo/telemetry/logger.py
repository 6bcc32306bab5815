"""Logging setup: structured console output plus optional OTLP export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:
    from .config import TelemetryConfig

_LOGGER: logging.Logger | None = None
_CONSOLE_HANDLER: logging.Handler | None = None
_OTLP_HANDLER: logging.Handler | None = None

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "otelTraceID",
    "otelSpanID",
    "otelTraceSampled",
    "otelServiceName",
}


class _OtelContextFilter(logging.Filter):
    """Ensures trace/span placeholders exist even when no context is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "-"
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "-"
        return True


class StructuredFormatter(logging.Formatter):
    """Appends the ``extra=`` fields of a record as sorted ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
            "%(fields)s | trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
        )

    def format(self, record: logging.LogRecord) -> str:
        fields = {
            key: value for key, value in vars(record).items() if key not in _RESERVED and key != "fields"
        }
        record.fields = "".join(f" {key}={value}" for key, value in sorted(fields.items()))
        return super().format(record)


def get_logger(name: str = "salvo") -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger(name)
    return _LOGGER


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Configure the ``salvo`` logger tree and, when enabled, OTLP log export."""
    global _CONSOLE_HANDLER, _OTLP_HANDLER

    logger = get_logger(config.service_name)
    package_logger = logging.getLogger("salvo")
    package_logger.setLevel(config.log_level)

    if _CONSOLE_HANDLER is None:
        _CONSOLE_HANDLER = logging.StreamHandler()
        _CONSOLE_HANDLER.setFormatter(StructuredFormatter())
        _CONSOLE_HANDLER.addFilter(_OtelContextFilter())
        package_logger.addHandler(_CONSOLE_HANDLER)

    if config.enable_logging and _OTLP_HANDLER is None:
        provider = LoggerProvider(resource=Resource.create(config.resource))
        if config.otlp_logs_endpoint:
            exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
            provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
        set_logger_provider(provider)
        _OTLP_HANDLER = LoggingHandler(level=logging.NOTSET, logger_provider=provider)
        _OTLP_HANDLER.addFilter(_OtelContextFilter())
        package_logger.addHandler(_OTLP_HANDLER)

    return logger
