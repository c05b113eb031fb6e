"""
Audit Logger

Every store mutation is logged as a structured audit event.

The audit logger:
- Is synchronous, like the store it serves
- Never raises into the caller (a broken sink must not break a mutation)
- Accepts an optional extra sink, e.g. a list in tests or a UI activity feed
"""

import logging
import sys
from typing import Callable, Optional

import structlog

from powerbill.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def setup_logging(debug: bool = False) -> None:
    """Route stdlib (and so structlog) output to stdout at the chosen level."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
        force=True,
    )


EventSink = Callable[[AuditEvent], None]


class AuditLogger:
    """
    Central audit logging service.

    Logs events to:
    1. Structured local log (always)
    2. An optional sink callable
    """

    def __init__(self, sink: Optional[EventSink] = None):
        self._sink = sink
        self._logger = structlog.get_logger("powerbill.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink accepted it (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=event.event_id,
                )
                return False

        return True

    def _emit(self, build: Callable[..., AuditEvent], *args) -> None:
        """Build an event and log it. A bad event is logged, never raised."""
        try:
            event = build(*args)
        except Exception as e:
            self._logger.error(
                "audit_event_invalid",
                builder=build.__name__,
                error=str(e),
            )
            return
        self.log(event)

    def log_property_added(self, property_id: str, name: str, property_type: str) -> None:
        self._emit(AuditEventBuilder.property_added, property_id, name, property_type)

    def log_property_deleted(self, property_id: str, meters_removed: int, existed: bool) -> None:
        self._emit(AuditEventBuilder.property_deleted, property_id, meters_removed, existed)

    def log_meters_added(self, property_id: str, meter_ids: list[str]) -> None:
        self._emit(AuditEventBuilder.meters_added, property_id, meter_ids)

    def log_meter_updated(self, meter_id: str, fields: list[str]) -> None:
        self._emit(AuditEventBuilder.meter_updated, meter_id, fields)

    def log_meter_removed(self, meter_id: str, property_id: str, existed: bool) -> None:
        self._emit(AuditEventBuilder.meter_removed, meter_id, property_id, existed)

    def log_api_key_changed(self, cleared: bool) -> None:
        self._emit(AuditEventBuilder.api_key_changed, cleared)

    def log_data_exported(self, property_count: int, meter_count: int) -> None:
        self._emit(AuditEventBuilder.data_exported, property_count, meter_count)

    def log_data_imported(self, property_count: int, meter_count: int) -> None:
        self._emit(AuditEventBuilder.data_imported, property_count, meter_count)

    def log_import_rejected(self, error_message: str) -> None:
        self._emit(AuditEventBuilder.import_rejected, error_message)

    def log_bill_refreshed(self, meter_id: str, amount: float, status: str) -> None:
        self._emit(AuditEventBuilder.bill_refreshed, meter_id, amount, status)

    def log_bill_fetch_failed(self, meter_id: str, error_message: str) -> None:
        self._emit(AuditEventBuilder.bill_fetch_failed, meter_id, error_message)

    def log_load_failed(self, storage_key: str, error_message: str) -> None:
        self._emit(AuditEventBuilder.load_failed, storage_key, error_message)

    def log_save_failed(self, storage_key: str, error_message: str) -> None:
        self._emit(AuditEventBuilder.save_failed, storage_key, error_message)
