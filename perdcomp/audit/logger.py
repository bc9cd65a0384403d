"""
Audit Logger

DESIGN DECISION: Every change to the order collection is logged.
This provides:
1. Traceability of imports, edits and deletions
2. Debugging capability when imports or store writes fail
3. A short history the UI can show

The audit logger:
- Never raises (a logging failure must not break the main flow)
- Keeps a bounded in-memory history of recent events
- Supports correlation IDs to trace related events
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from perdcomp.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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

# Plain stdlib logger for when the structured pipeline itself fails
_fallback_logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory history (for the UI)
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("perdcomp.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._sink_failures = 0

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally and keep it in the history."""
        self._history.append(event)

        try:
            log_dict = event.to_log_dict()
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise; the event stays in the history
            self._sink_failures += 1
            _fallback_logger.warning("audit log failed for %s: %s", event.event_type, e)

    @property
    def sink_failures(self) -> int:
        """How many events could not be written to the structured log."""
        return self._sink_failures

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_orders_imported(
        self,
        filename: str,
        source: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.orders_imported(filename, source, count, correlation_id))

    def log_import_failed(
        self,
        filename: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.import_failed(filename, error_message, correlation_id))

    def log_extraction_failed(
        self,
        filename: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.extraction_failed(filename, error_message, correlation_id))

    def log_order_created(self, order_id: str, filing_number: str) -> None:
        self.log(AuditEventBuilder.order_created(order_id, filing_number))

    def log_order_updated(self, order_id: str, changed_fields: list[str]) -> None:
        self.log(AuditEventBuilder.order_updated(order_id, changed_fields))

    def log_payment_status_updated(self, order_id: str, is_paid: bool) -> None:
        self.log(AuditEventBuilder.payment_status_updated(order_id, is_paid))

    def log_order_deleted(self, order_id: str) -> None:
        self.log(AuditEventBuilder.order_deleted(order_id))

    def log_collection_cleared(self, count: int) -> None:
        self.log(AuditEventBuilder.collection_cleared(count))

    def log_backup_exported(self, count: int) -> None:
        self.log(AuditEventBuilder.backup_exported(count))

    def log_backup_restored(self, count: int) -> None:
        self.log(AuditEventBuilder.backup_restored(count))

    def log_backup_rejected(self, error_message: str) -> None:
        self.log(AuditEventBuilder.backup_rejected(error_message))

    def log_export_generated(self, kind: str, view_type: str, count: int) -> None:
        self.log(AuditEventBuilder.export_generated(kind, view_type, count))

    def log_store_loaded(self, key: str, count: int) -> None:
        self.log(AuditEventBuilder.store_loaded(key, count))

    def log_store_load_failed(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.store_load_failed(key, error_message))

    def log_store_write_failed(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.store_write_failed(key, error_message))

    def log_validation_failed(self, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.validation_failed(issues))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a file import).
    Pass it through all subsequent operations.
    """
    return uuid4()
