"""Client data model."""

import datetime as dt
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator

from freelance_ledger.models.base import (
    BaseDataModel,
    coerce_optional_date,
    coerce_tags,
    strip_required,
)


class Client(BaseDataModel):
    """Represents a client the freelancer works for.

    Attributes:
        id: Record id once persisted
        name: Contact name
        company: Company name
        email: Contact email
        phone: Contact phone number
        status: active, inactive or lead
        tags: Free-form labels
        address: Postal address
        last_contact: Date of the last contact

    Example:
        >>> client = Client(name="Ada Lovelace", company="Analytical Engines")
        >>> client.status
        'active'
    """

    id: Optional[int] = Field(None, description="Record id")
    name: str = Field(..., min_length=1, description="Contact name")
    company: Optional[str] = Field(None, description="Company name")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, description="Contact phone")
    status: Literal["active", "inactive", "lead"] = Field(
        "active", description="Client status"
    )
    tags: List[str] = Field(default_factory=list, description="Labels")
    address: Optional[str] = Field(None, description="Postal address")
    last_contact: Optional[dt.date] = Field(None, description="Last contact date")

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that the name is not empty or whitespace only."""
        return strip_required(v, info.field_name)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        """Loose email check; the form reports the message inline."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError(f"Invalid email address: {v}")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> List[str]:
        """Accept comma separated strings as stored by the record layer."""
        return coerce_tags(v)

    @field_validator("last_contact", mode="before")
    @classmethod
    def parse_last_contact(cls, v: Any) -> Optional[dt.date]:
        """Accept ISO, European and US date strings."""
        return coerce_optional_date(v)
