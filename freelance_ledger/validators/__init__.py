"""Validation layer for form input."""

from freelance_ledger.validators.field_validators import FieldValidators
from freelance_ledger.validators.form_validators import (
    validate_client,
    validate_expense,
    validate_invoice,
    validate_project,
    validate_task,
    validate_time_entry,
)
from freelance_ledger.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    "FieldValidators",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSeverity",
    "validate_client",
    "validate_expense",
    "validate_invoice",
    "validate_project",
    "validate_task",
    "validate_time_entry",
]
