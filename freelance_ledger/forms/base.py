"""
Editing sessions for the entity forms.

A form holds the raw field values being edited, validates them on submit and
hands the resulting model to an entity service. The form only takes over the
stored record after the service call succeeded, so a failed submit leaves the
edited values in place for another attempt.
"""

import logging
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Tuple, TypeVar

from freelance_ledger.services.entity_service import EntityService
from freelance_ledger.validators.validation_report import ValidationReport

logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator = Callable[[Mapping[str, Any]], Tuple[ValidationReport, Dict[str, Any]]]


class EntityForm(Generic[T]):
    """
    Create or edit one record of an entity service.

    Subclasses provide the field defaults, the validator, and the mapping
    between form values and the model.

    Attributes:
        values: Field values as entered
        errors: Field name to first error message from the last validation
        record_id: Id of the record being edited, None for a new record
        saved: The record as returned by the last successful submit or load
    """

    fields: Tuple[str, ...] = ()
    validator: Validator

    def __init__(
        self,
        service: EntityService[T],
        values: Optional[Mapping[str, Any]] = None,
    ):
        self.service = service
        self.values: Dict[str, Any] = self.defaults()
        self.errors: Dict[str, str] = {}
        self.record_id: Optional[int] = None
        self.saved: Optional[T] = None
        for name, value in (values or {}).items():
            self.set(name, value)

    @classmethod
    def edit(cls, service: EntityService[T], record_id: int) -> "EntityForm[T]":
        """Open a form on a stored record.

        Raises:
            NotFoundError: If the record does not exist
        """
        form = cls(service)
        form.load(service.get(record_id))
        return form

    def defaults(self) -> Dict[str, Any]:
        return {name: None for name in self.fields}

    def load(self, model: T) -> None:
        """Replace the form state with a stored record."""
        self.values = self.to_values(model)
        self.record_id = getattr(model, "id", None)
        self.saved = model
        self.errors = {}

    def set(self, name: str, value: Any) -> None:
        """Change one field; its previous error is cleared."""
        if name not in self.fields:
            raise KeyError(f"Unknown field '{name}'. Fields: {', '.join(self.fields)}")
        self.values[name] = value
        self.errors.pop(name, None)
        self.on_change(name)

    def on_change(self, name: str) -> None:
        """Hook for fields derived from other fields."""

    @property
    def is_new(self) -> bool:
        return self.record_id is None

    def validate(self) -> Tuple[ValidationReport, Dict[str, Any]]:
        """Validate the current values and remember the field errors."""
        report, cleaned = type(self).validator(self.values)
        self.errors = report.errors_by_field()
        return report, cleaned

    def submit(self) -> T:
        """
        Validate and save the form.

        Returns:
            The stored record

        Raises:
            ValidationError: If a field is invalid; nothing is sent
            RemoteOperationError: If the store call fails
            NotFoundError: If the edited record was deleted meanwhile
        """
        report, cleaned = self.validate()
        report.raise_if_invalid()
        model = self.build(cleaned)

        if self.is_new:
            stored = self.service.create(model)
        else:
            stored = self.service.update(self.record_id, model)

        self.load(stored)
        logger.debug(f"{type(self).__name__} saved record {self.record_id}")
        return stored

    def build(self, cleaned: Dict[str, Any]) -> T:
        raise NotImplementedError

    def to_values(self, model: T) -> Dict[str, Any]:
        raise NotImplementedError
