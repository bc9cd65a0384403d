"""
Core Data Models for the PER/DCOMP Tracker

These models define the schemas for all data flowing through the system.
They are designed to:
1. Keep the stored JSON compatible with existing backups (camelCase keys)
2. Apply the same defaults wherever a record is created
3. Be serializable for storage, backups and logging

DESIGN DECISION: FilingRecord is lenient on input. Backups and the local
store are trusted as-is (no schema check beyond types), so missing fields
fall back to the import defaults instead of failing the load.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from perdcomp.utils import (
    generate_id,
    normalize_datetime,
    parse_date_value,
    parse_value,
    to_iso,
    utc_now,
)


NOT_AVAILABLE = "N/A"

_TRUE_WORDS = {"true", "1", "yes", "sim", "s", "y", "on"}


def _as_text(v: Any) -> Any:
    # Numbers and strings go through pydantic; anything else is stringified
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return v
    return str(v)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class FilingStatus(str, Enum):
    """
    Statuses offered by the manual entry form.

    Stored statuses are free text; imports may bring other labels.
    """
    UNDER_REVIEW = "Em análise"
    APPROVED = "Deferido"
    REJECTED = "Indeferido"
    CANCELLED = "Cancelado"
    PROCESSING = "Em Processamento"


# Vocabulary the extraction model is allowed to answer with
EXTRACTION_STATUSES = (
    "Em Processamento",
    "Deferido",
    "Indeferido",
    "Cancelado",
    "Retificado",
)

DOCUMENT_TYPE_OPTIONS = (
    "Pedido de Ressarcimento",
    "Declaração de Compensação",
    "Pedido de Restituição",
)


class OrderCategory(str, Enum):
    """Classification of a filing, derived from its document type."""
    COMPENSATION = "compensation"
    RESTITUTION = "restitution"


class ViewType(str, Enum):
    """Which slice of the collection the list, stats and exports show."""
    ALL = "all"
    COMPENSATION = "compensation"
    RESTITUTION = "restitution"


# =============================================================================
# CORE RECORD MODEL
# =============================================================================

class FilingRecord(BaseModel):
    """
    A single PER/DCOMP filing.

    `id` and `imported_at` are assigned once at creation. Everything else
    can be edited from the UI.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str = Field(
        default_factory=generate_id,
        description="Opaque unique identifier"
    )
    filing_number: str = Field(
        default=NOT_AVAILABLE,
        alias="perDcompNumber",
        description="PER/DCOMP number (business key, not unique)"
    )
    transmission_date: datetime = Field(
        default_factory=utc_now,
        alias="transmissionDate",
        description="Date the filing was transmitted (naive UTC)"
    )
    credit_type: str = Field(
        default=NOT_AVAILABLE,
        alias="creditType",
        description="Tax credit category (IPI, PIS, COFINS...)"
    )
    document_type: str = Field(
        default=NOT_AVAILABLE,
        alias="documentType",
        description="Filing document type; drives classification"
    )
    status: str = Field(
        default=FilingStatus.UNDER_REVIEW.value,
        description="Lifecycle label"
    )
    value: float = Field(
        default=0.0,
        description="Credit amount"
    )
    imported_at: datetime = Field(
        default_factory=utc_now,
        alias="importedAt",
        description="When the record entered the system"
    )
    is_paid: bool = Field(
        default=False,
        alias="isPaid",
        description="Settlement flag"
    )
    bank: str = Field(
        default="",
        description="Settlement channel"
    )

    @field_validator("id", mode="before")
    @classmethod
    def default_missing_id(cls, v: Any) -> Any:
        if v is None or v == "":
            return generate_id()
        return _as_text(v)

    @field_validator("filing_number", "credit_type", "document_type", mode="before")
    @classmethod
    def default_missing_text(cls, v: Any) -> Any:
        return NOT_AVAILABLE if v is None else _as_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def default_missing_status(cls, v: Any) -> Any:
        if isinstance(v, FilingStatus):
            return v.value
        return FilingStatus.UNDER_REVIEW.value if v is None else _as_text(v)

    @field_validator("bank", mode="before")
    @classmethod
    def default_missing_bank(cls, v: Any) -> Any:
        return "" if v is None else _as_text(v)

    @field_validator("is_paid", mode="before")
    @classmethod
    def coerce_paid(cls, v: Any) -> bool:
        """Anything that is not clearly "paid" reads as unpaid."""
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            return v == 1
        if isinstance(v, str):
            return v.strip().lower() in _TRUE_WORDS
        return False

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> float:
        """Amounts may arrive as "R$ 1.234,56" strings from old backups."""
        return parse_value(v)

    @field_validator("transmission_date", "imported_at", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: Any) -> Any:
        """Unreadable timestamps fall back to now, like extracted filings do."""
        if isinstance(v, datetime):
            return v
        try:
            return parse_date_value(v) or utc_now()
        except (ValueError, OverflowError, TypeError):
            return utc_now()

    @field_validator("transmission_date", "imported_at")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return normalize_datetime(v)

    @field_serializer("transmission_date", "imported_at", when_used="json")
    def serialize_timestamp(self, v: datetime) -> str:
        return to_iso(v)

    def to_backup_dict(self) -> dict:
        """Convert to the JSON-ready dict used by the store and backups."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# QUERY MODELS
# =============================================================================

class FilterQuery(BaseModel):
    """
    What the list is currently showing.

    Bounds are whole days; the filter engine expands them to
    00:00:00.000 and 23:59:59.999.
    """

    search_term: str = Field(
        default="",
        description="Matched against filing number and bank"
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    view_type: ViewType = ViewType.ALL

    def signature(self) -> tuple:
        """Hashable identity of the query; pagination resets when it changes."""
        return (self.search_term, self.start_date, self.end_date, self.view_type)


class OrderStats(BaseModel):
    """Summary figures shown on the stats cards."""

    total_compensated: float = 0.0
    total_restitution: float = 0.0
    total_paid: float = 0.0
    total_pending: float = 0.0
    gross_total: float = 0.0
    paid_count: int = 0
    total_count: int = 0


class Page(BaseModel):
    """One page of a sequence."""

    items: list[Any] = Field(default_factory=list)
    total_pages: int = Field(ge=0)
    page: int
    page_size: int = Field(gt=0)


# =============================================================================
# INPUT MODELS
# =============================================================================

class ExtractedFiling(BaseModel):
    """
    Data returned by the extraction model for an XML filing.

    CRITICAL: This is a best-effort guess from an external service.
    Every field is optional no matter what the service promises.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    filing_number: Optional[str] = Field(default=None, alias="perDcompNumber")
    transmission_date: Optional[str] = Field(default=None, alias="transmissionDate")
    credit_type: Optional[str] = Field(default=None, alias="creditType")
    document_type: Optional[str] = Field(default=None, alias="documentType")
    status: Optional[str] = None
    value: Optional[float] = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return parse_value(v)

    @field_validator(
        "filing_number", "transmission_date", "credit_type", "document_type", "status",
        mode="after",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ManualEntry(BaseModel):
    """Payload of the manual entry form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    filing_number: str = ""
    transmission_date: date = Field(default_factory=date.today)
    credit_type: str = ""
    document_type: str = ""
    status: FilingStatus = FilingStatus.UNDER_REVIEW
    value: float = 0.0
    is_paid: bool = False
    bank: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> float:
        return parse_value(v)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a manual entry."""

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


# =============================================================================
# IMPORT RESULT
# =============================================================================

class ImportResult(BaseModel):
    """Outcome of one file import."""

    filename: str
    source: str = Field(
        ...,
        pattern="^(spreadsheet|xml)$",
        description="Which importer produced the records"
    )
    records: list[FilingRecord] = Field(default_factory=list)
    persistence_warning: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.records)

    @model_validator(mode="after")
    def check_records(self) -> "ImportResult":
        if not self.records:
            raise ValueError("An import result must carry at least one record")
        return self
