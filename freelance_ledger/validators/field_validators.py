"""Field-level validators for raw form input.

Each validator checks one field, records problems in a ValidationReport,
and returns the parsed value (or None when the field is invalid) so the
form validators can run cross-field checks on clean values.
"""

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Iterable, Optional

from freelance_ledger.utils.converters import parse_date, parse_time, to_decimal
from freelance_ledger.validators.validation_report import ValidationReport

_EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
_PHONE_PATTERN = re.compile(r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$")


def is_blank(value: Any) -> bool:
    """Whether a form value counts as not filled in."""
    return value is None or (isinstance(value, str) and not value.strip())


class FieldValidators:
    """Collection of field-level validation methods."""

    @staticmethod
    def validate_date(
        value: Any,
        field_name: str,
        report: ValidationReport,
        required_message: str = "Date is required",
    ) -> Optional[dt.date]:
        """Validate a required date field.

        Args:
            value: Date, or a date string in ISO, European or US format
            field_name: Name of the field being validated
            report: ValidationReport to collect issues
            required_message: Message used when the value is missing

        Returns:
            The parsed date, or None if invalid
        """
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        try:
            return parse_date(value)
        except ValueError:
            report.add_error(field_name, "Please enter a valid date", value)
            return None

    @staticmethod
    def validate_optional_date(
        value: Any, field_name: str, report: ValidationReport
    ) -> Optional[dt.date]:
        """Validate a date field that may be left empty."""
        if is_blank(value):
            return None
        return FieldValidators.validate_date(value, field_name, report)

    @staticmethod
    def validate_time(
        value: Any,
        field_name: str,
        report: ValidationReport,
        required_message: str = "Time is required",
    ) -> Optional[dt.time]:
        """Validate a required HH:MM time field."""
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        try:
            return parse_time(value)
        except ValueError:
            report.add_error(field_name, "Please enter a time as HH:MM", value)
            return None

    @staticmethod
    def validate_required_text(
        value: Any,
        field_name: str,
        report: ValidationReport,
        required_message: str = "Value is required",
    ) -> Optional[str]:
        """Validate that a text field is not empty or whitespace."""
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        return str(value).strip()

    @staticmethod
    def validate_positive_amount(
        value: Any,
        field_name: str,
        report: ValidationReport,
        required_message: str = "Amount is required",
        invalid_message: str = "Amount must be a positive number",
    ) -> Optional[Decimal]:
        """Validate that a required value is a number greater than 0."""
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        try:
            amount = to_decimal(value)
        except ValueError:
            report.add_error(field_name, invalid_message, value)
            return None
        if amount <= 0:
            report.add_error(field_name, invalid_message, value)
            return None
        return amount

    @staticmethod
    def validate_non_negative_amount(
        value: Any,
        field_name: str,
        report: ValidationReport,
        message: str = "Value cannot be negative",
    ) -> Optional[Decimal]:
        """Validate an optional number that must be >= 0 (blank means 0)."""
        if is_blank(value):
            return Decimal("0")
        try:
            amount = to_decimal(value)
        except ValueError:
            report.add_error(field_name, message, value)
            return None
        if amount < 0:
            report.add_error(field_name, message, value)
            return None
        return amount

    @staticmethod
    def validate_choice(
        value: Any,
        field_name: str,
        report: ValidationReport,
        choices: Iterable[str],
        required_message: str = "Value is required",
    ) -> Optional[str]:
        """Validate that a value is one of a fixed set (case-insensitive)."""
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        options = list(choices)
        text = str(getattr(value, "value", value)).strip().lower()
        for option in options:
            if option.lower() == text:
                return option
        report.add_error(
            field_name, f"Must be one of: {', '.join(options)}", value
        )
        return None

    @staticmethod
    def validate_reference(
        value: Any,
        field_name: str,
        report: ValidationReport,
        required_message: str,
    ) -> Optional[int]:
        """Validate a required record id reference."""
        if is_blank(value):
            report.add_error(field_name, required_message, value)
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            report.add_error(field_name, required_message, value)
            return None

    @staticmethod
    def validate_email(value: Any, field_name: str, report: ValidationReport) -> None:
        """Validate an optional email address."""
        if not is_blank(value) and not _EMAIL_PATTERN.match(str(value).strip()):
            report.add_error(field_name, "Please enter a valid email address", value)

    @staticmethod
    def validate_phone(value: Any, field_name: str, report: ValidationReport) -> None:
        """Validate an optional phone number."""
        if not is_blank(value) and not _PHONE_PATTERN.match(str(value).strip()):
            report.add_error(field_name, "Please enter a valid phone number", value)
