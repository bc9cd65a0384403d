"""
Manual Entry Validation

DESIGN DECISION: Imports are trusted and never validated (bad values are
coerced to defaults instead). Records typed in by hand are different: the
form is the one place where a missing filing number or a zero amount is
almost certainly a mistake, so those two are errors and block the save.

Everything else is a warning. Warnings are shown but never block:
- Transmission date in the future
- Negative amount
- Filing number already present in the collection

IMPORTANT: Validation NEVER silently fixes issues.
"""

from datetime import date
from typing import Optional

from perdcomp.models.order import ManualEntry, ValidationIssue, ValidationResult
from perdcomp.repository import OrderRepository


class RecordValidationError(Exception):
    """A manual entry failed validation; nothing was saved."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        ))


class RecordValidator:
    """Checks manual entries before they become records."""

    def __init__(self, repository: Optional[OrderRepository] = None):
        """
        Args:
            repository: Used for the duplicate filing number warning.
                        If None, that check is skipped.
        """
        self._repository = repository

    def _check_required(self, entry: ManualEntry) -> list[ValidationIssue]:
        issues = []

        if not entry.filing_number:
            issues.append(ValidationIssue(
                field="filing_number",
                issue_type="missing",
                message="Informe o número do PER/DCOMP.",
                severity="error",
            ))

        if entry.value == 0:
            issues.append(ValidationIssue(
                field="value",
                issue_type="invalid_value",
                message="Informe um valor diferente de zero.",
                severity="error",
            ))

        return issues

    def _check_consistency(self, entry: ManualEntry) -> list[ValidationIssue]:
        issues = []

        if entry.transmission_date > date.today():
            issues.append(ValidationIssue(
                field="transmission_date",
                issue_type="future_date",
                message=f"A data de transmissão ({entry.transmission_date:%d/%m/%Y}) está no futuro.",
                severity="warning",
            ))

        if entry.value < 0:
            issues.append(ValidationIssue(
                field="value",
                issue_type="suspicious_value",
                message="O valor informado é negativo.",
                severity="warning",
            ))

        return issues

    def _check_duplicates(self, entry: ManualEntry) -> list[ValidationIssue]:
        if self._repository is None or not entry.filing_number:
            return []

        number = entry.filing_number.casefold()
        if any(order.filing_number.casefold() == number for order in self._repository.orders):
            return [ValidationIssue(
                field="filing_number",
                issue_type="potential_duplicate",
                message=f"Já existe um pedido com o número {entry.filing_number}.",
                severity="warning",
            )]
        return []

    def validate(self, entry: ManualEntry) -> ValidationResult:
        """Run every check and collect the issues."""
        issues = self._check_required(entry)
        issues.extend(self._check_consistency(entry))
        issues.extend(self._check_duplicates(entry))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def ensure_valid(self, entry: ManualEntry) -> ValidationResult:
        """
        Validate and raise on errors.

        Raises:
            RecordValidationError: if any error-level issue was found
        """
        result = self.validate(entry)
        if not result.is_valid:
            raise RecordValidationError(result)
        return result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        if not result.issues:
            return "✅ Tudo certo."

        lines = []
        for issue in result.issues:
            icon = "❌" if issue.severity == "error" else "⚠️"
            lines.append(f"{icon} {issue.message}")
        return "\n".join(lines)
