"""
Audit Models for the PER/DCOMP Tracker

Every change to the order collection is logged for audit purposes.
This provides:
1. Traceability of imports, edits and deletions
2. Debugging information when an import or a store write fails
3. A record of backups taken and restored

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from perdcomp.utils import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Imports
    ORDERS_IMPORTED = "orders_imported"
    IMPORT_FAILED = "import_failed"
    EXTRACTION_FAILED = "extraction_failed"

    # Collection changes
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    ORDER_DELETED = "order_deleted"
    PAYMENT_STATUS_UPDATED = "payment_status_updated"
    COLLECTION_CLEARED = "collection_cleared"

    # Backups and exports
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_RESTORED = "backup_restored"
    BACKUP_REJECTED = "backup_rejected"
    EXPORT_GENERATED = "export_generated"

    # Persistence
    STORE_LOADED = "store_loaded"
    STORE_LOAD_FAILED = "store_load_failed"
    STORE_WRITE_FAILED = "store_write_failed"

    # Manual entry
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'order', 'backup', 'file')"
    )
    entity_id: Optional[str] = None

    # For tracking related events (e.g. one import)
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.orders_imported("lote.xlsx", "spreadsheet", 12, correlation_id)
        event = AuditEventBuilder.order_deleted(order_id)
    """

    @staticmethod
    def orders_imported(
        filename: str,
        source: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORDERS_IMPORTED,
            entity_type="file",
            entity_id=filename,
            correlation_id=correlation_id,
            description=f"Imported {count} order(s) from {filename}",
            details={
                "source": source,
                "count": count,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_failed(
        filename: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="file",
            entity_id=filename,
            correlation_id=correlation_id,
            description=f"Import of {filename} failed",
            error_message=error_message,
        )

    @staticmethod
    def extraction_failed(
        filename: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="file",
            entity_id=filename,
            correlation_id=correlation_id,
            description=f"Extraction service failed for {filename}",
            error_message=error_message,
            details={"service": "gemini"},
        )

    @staticmethod
    def order_created(order_id: str, filing_number: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORDER_CREATED,
            entity_type="order",
            entity_id=order_id,
            description=f"Order {filing_number} created manually",
            is_user_action=True,
        )

    @staticmethod
    def order_updated(order_id: str, changed_fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORDER_UPDATED,
            entity_type="order",
            entity_id=order_id,
            description=f"Order updated ({', '.join(changed_fields) or 'no changes'})",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def payment_status_updated(order_id: str, is_paid: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_STATUS_UPDATED,
            entity_type="order",
            entity_id=order_id,
            description="Order marked as paid" if is_paid else "Payment reverted",
            details={"is_paid": is_paid},
            is_user_action=True,
        )

    @staticmethod
    def order_deleted(order_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORDER_DELETED,
            entity_type="order",
            entity_id=order_id,
            description="Order deleted",
            is_user_action=True,
        )

    @staticmethod
    def collection_cleared(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="collection",
            description=f"Local collection cleared ({count} orders removed)",
            details={"removed": count},
            is_user_action=True,
        )

    @staticmethod
    def backup_exported(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description=f"Backup exported with {count} orders",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def backup_restored(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            entity_type="backup",
            description=f"Backup restored with {count} orders",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def backup_rejected(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            description="Backup file rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def export_generated(kind: str, view_type: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            entity_id=kind,
            description=f"{kind.upper()} export generated with {count} orders",
            details={"view_type": view_type, "count": count},
            is_user_action=True,
        )

    @staticmethod
    def store_loaded(key: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="store",
            entity_id=key,
            description=f"Loaded {count} orders from local store",
            details={"count": count},
        )

    @staticmethod
    def store_load_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            entity_id=key,
            description="Stored orders could not be read; starting empty",
            error_message=error_message,
        )

    @staticmethod
    def store_write_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            entity_id=key,
            description="Orders could not be written to local store",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="manual_entry",
            description=f"Manual entry rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )
