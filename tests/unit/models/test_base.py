"""Unit tests for base model functionality."""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
from pydantic import ValidationError, field_validator

from freelance_ledger.models.base import (
    BaseDataModel,
    coerce_decimal,
    coerce_optional_date,
    coerce_tags,
    strip_required,
)


class Contact(BaseDataModel):
    name: str
    rate: Decimal
    since: Optional[date] = None

    @field_validator("rate", mode="before")
    @classmethod
    def convert_rate(cls, v):
        return coerce_decimal(v)


class TestBaseModelSerialization:
    """Test serialization/deserialization for models."""

    def test_model_can_be_created_with_valid_data(self):
        """Test that a simple model can be created with valid data."""
        model = Contact(name="test", rate="42.50")
        assert model.name == "test"
        assert model.rate == Decimal("42.50")

    def test_model_round_trip(self):
        """Test that a dumped model validates back to an equal model."""
        model = Contact(name="test", rate=1, since=date(2024, 1, 1))
        assert Contact(**model.model_dump()) == model

    def test_unknown_fields_rejected(self):
        """Test that raw records cannot reach a model unmapped."""
        with pytest.raises(ValidationError):
            Contact(name="test", rate=1, createdOn="2024-01-01")

    def test_assignment_is_validated(self):
        """Test validation on assignment."""
        model = Contact(name="test", rate=1)
        with pytest.raises(ValidationError):
            model.rate = "lots"

    def test_float_input_has_no_artefacts(self):
        """Test that floats convert through their string form."""
        assert Contact(name="test", rate=0.1).rate == Decimal("0.1")


class TestFieldHelpers:
    """Test cases for the shared field validator bodies."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_optional_date_empty(self, value):
        """Test that empty dates become None."""
        assert coerce_optional_date(value) is None

    def test_optional_date_parsed(self):
        """Test that a date string is parsed."""
        assert coerce_optional_date("15.06.2024") == date(2024, 6, 15)

    def test_strip_required(self):
        """Test stripping a required string."""
        assert strip_required("  Ada ", "name") == "Ada"

    def test_strip_required_blank(self):
        """Test that whitespace only is rejected."""
        with pytest.raises(ValueError, match="name cannot be empty"):
            strip_required("   ", "name")

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, []),
            ("", []),
            ("vip, design,,", ["vip", "design"]),
            (("a", "b"), ["a", "b"]),
        ],
    )
    def test_coerce_tags(self, value, expected):
        """Test tag lists and comma separated tag strings."""
        assert coerce_tags(value) == expected
