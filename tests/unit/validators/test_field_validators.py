"""Tests for field-level validators."""

import datetime as dt
from decimal import Decimal

import pytest

from freelance_ledger.validators.field_validators import FieldValidators, is_blank
from freelance_ledger.validators.validation_report import ValidationReport


@pytest.fixture
def report():
    return ValidationReport()


class TestIsBlank:
    """Tests for is_blank."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_values(self, value):
        """Test values that count as not filled in."""
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, "0", False, "x"])
    def test_filled_values(self, value):
        """Test that falsy but entered values are not blank."""
        assert not is_blank(value)


class TestDateAndTime:
    """Tests for date and time validation."""

    def test_valid_dates(self, report):
        """Test ISO, European and US formats."""
        for value in ("2024-06-15", "15.06.2024", "06/15/2024"):
            parsed = FieldValidators.validate_date(value, "date", report)
            assert parsed == dt.date(2024, 6, 15)
        assert report.is_valid()

    def test_missing_date(self, report):
        """Test the required message."""
        assert FieldValidators.validate_date("", "date", report) is None
        assert report.errors_by_field() == {"date": "Date is required"}

    def test_invalid_date(self, report):
        """Test an unparsable date."""
        FieldValidators.validate_date("31.02.2024", "date", report)
        assert report.errors_by_field() == {"date": "Please enter a valid date"}

    def test_optional_date_blank(self, report):
        """Test that an optional date may be left empty."""
        assert FieldValidators.validate_optional_date(None, "due_date", report) is None
        assert report.is_valid()

    def test_invalid_time(self, report):
        """Test that times must be HH:MM."""
        assert FieldValidators.validate_time("9am", "start_time", report) is None
        assert report.errors_by_field() == {
            "start_time": "Please enter a time as HH:MM"
        }

    def test_valid_time(self, report):
        """Test a valid time."""
        assert FieldValidators.validate_time("9:05", "start_time", report) == dt.time(
            9, 5
        )


class TestAmounts:
    """Tests for numeric validation."""

    @pytest.mark.parametrize("value", ["0", "-5", "abc", 0])
    def test_positive_amount_rejects(self, report, value):
        """Test that amounts must be numbers above zero."""
        assert FieldValidators.validate_positive_amount(value, "amount", report) is None
        assert report.errors_by_field() == {
            "amount": "Amount must be a positive number"
        }

    def test_positive_amount_accepts(self, report):
        """Test a valid amount."""
        amount = FieldValidators.validate_positive_amount("12.50", "amount", report)
        assert amount == Decimal("12.50")

    def test_non_negative_blank_is_zero(self, report):
        """Test that an empty budget means zero."""
        assert FieldValidators.validate_non_negative_amount("", "budget", report) == 0

    def test_non_negative_rejects_negative(self, report):
        """Test the custom message for negative values."""
        FieldValidators.validate_non_negative_amount(
            "-1", "budget", report, "Budget must be a positive number"
        )
        assert report.errors_by_field() == {
            "budget": "Budget must be a positive number"
        }


class TestChoicesAndReferences:
    """Tests for choice, reference and contact validation."""

    def test_choice_is_case_insensitive(self, report):
        """Test that the canonical option is returned."""
        result = FieldValidators.validate_choice(
            "office supplies", "category", report, ["Travel", "Office Supplies"]
        )
        assert result == "Office Supplies"

    def test_unknown_choice(self, report):
        """Test the message listing the options."""
        FieldValidators.validate_choice("Yachts", "category", report, ["Travel"])
        assert report.errors_by_field() == {"category": "Must be one of: Travel"}

    def test_reference(self, report):
        """Test record id references."""
        assert FieldValidators.validate_reference("7", "project_id", report, "x") == 7
        FieldValidators.validate_reference(
            "", "client_id", report, "Please select a client"
        )
        assert report.errors_by_field() == {"client_id": "Please select a client"}

    @pytest.mark.parametrize(
        "email,valid", [("ada@example.com", True), ("ada@", False), ("", True)]
    )
    def test_email(self, report, email, valid):
        """Test optional email validation."""
        FieldValidators.validate_email(email, "email", report)
        assert report.is_valid() is valid

    @pytest.mark.parametrize(
        "phone,valid",
        [("555-123-4567", True), ("(555) 123-4567", True), ("12", False)],
    )
    def test_phone(self, report, phone, valid):
        """Test optional phone validation."""
        FieldValidators.validate_phone(phone, "phone", report)
        assert report.is_valid() is valid
