"""
Data Models Package

This package contains all Pydantic models used in the PER/DCOMP Tracker.
All data flowing through the system must conform to these schemas.
"""

from perdcomp.models.order import (
    DOCUMENT_TYPE_OPTIONS,
    EXTRACTION_STATUSES,
    NOT_AVAILABLE,
    ExtractedFiling,
    FilingRecord,
    FilingStatus,
    FilterQuery,
    ImportResult,
    ManualEntry,
    OrderCategory,
    OrderStats,
    Page,
    ValidationIssue,
    ValidationResult,
    ViewType,
)
from perdcomp.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Order models
    "DOCUMENT_TYPE_OPTIONS",
    "EXTRACTION_STATUSES",
    "NOT_AVAILABLE",
    "ExtractedFiling",
    "FilingRecord",
    "FilingStatus",
    "FilterQuery",
    "ImportResult",
    "ManualEntry",
    "OrderCategory",
    "OrderStats",
    "Page",
    "ValidationIssue",
    "ValidationResult",
    "ViewType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
