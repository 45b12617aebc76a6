"""Per-field collection of form validation problems."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional

from freelance_ledger.exceptions import ValidationError


class ValidationSeverity(IntEnum):
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass
class ValidationIssue:
    """One problem with one form field.

    ``value`` keeps the rejected input so the form can show it back.
    """

    severity: ValidationSeverity
    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        return f"[{self.severity.name}] {self.field}: {self.message}"


class ValidationReport:
    """Problems found while validating one form submission.

    Only ERROR issues make the report invalid; warnings are informational.

    Example:
        >>> report = ValidationReport()
        >>> report.add_error("amount", "Amount is required")
        >>> report.errors_by_field()
        {'amount': 'Amount is required'}
    """

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def _of(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity is severity]

    def _add(self, severity, field, message, value) -> None:
        self.issues.append(ValidationIssue(severity, field, message, value))

    def add_error(self, field: str, message: str, value: Any = None) -> None:
        self._add(ValidationSeverity.ERROR, field, message, value)

    def add_warning(self, field: str, message: str, value: Any = None) -> None:
        self._add(ValidationSeverity.WARNING, field, message, value)

    def get_errors(self) -> List[ValidationIssue]:
        return self._of(ValidationSeverity.ERROR)

    def get_warnings(self) -> List[ValidationIssue]:
        return self._of(ValidationSeverity.WARNING)

    @property
    def error_count(self) -> int:
        return len(self.get_errors())

    @property
    def warning_count(self) -> int:
        return len(self.get_warnings())

    def has_errors(self) -> bool:
        return bool(self.get_errors())

    def is_valid(self) -> bool:
        return not self.has_errors()

    def has_error_for(self, field: str) -> bool:
        return field in self.errors_by_field()

    def errors_by_field(self) -> Dict[str, str]:
        """First error message of every failing field, in the order found."""
        errors: Dict[str, str] = {}
        for issue in self.get_errors():
            errors.setdefault(issue.field, issue.message)
        return errors

    def merge(self, other: "ValidationReport") -> None:
        self.issues.extend(other.issues)

    def summary(self) -> str:
        counts = [
            f"{count} {label}(s)"
            for count, label in (
                (self.error_count, "error"),
                (self.warning_count, "warning"),
            )
            if count
        ]
        return ", ".join(counts) or "No issues found"

    def raise_if_invalid(self, message: Optional[str] = None) -> None:
        """Raise ValidationError carrying this report when it has errors.

        Without ``message`` the first error's text is used. The exception
        names a field only when exactly one error was recorded.

        Raises:
            ValidationError: If any error-level issue was recorded
        """
        errors = self.get_errors()
        if errors:
            field = errors[0].field if len(errors) == 1 else None
            raise ValidationError(
                message or errors[0].message, field=field, report=self
            )
