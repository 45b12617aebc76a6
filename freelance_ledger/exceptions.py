"""Exception hierarchy for the freelance ledger.

Validation problems are raised before anything reaches the record layer,
remote failures are raised by the entity services, and every error is
recoverable by the caller.
"""

from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from freelance_ledger.validators.validation_report import ValidationReport


class FreelanceLedgerError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
        """
        self.message = message
        super().__init__(message)


class ValidationError(FreelanceLedgerError):
    """Input failed validation: missing field, amount out of range, bad format.

    Attributes:
        field: Name of the offending field, when a single field is at fault
        report: Full validation report with one issue per field, if collected
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        report: Optional["ValidationReport"] = None,
    ):
        super().__init__(message)
        self.field = field
        self.report = report

    @property
    def field_errors(self) -> dict:
        """Map of field name to first error message, for inline display."""
        if self.report is None:
            return {self.field: self.message} if self.field else {}
        errors: dict = {}
        for issue in self.report.get_errors():
            errors.setdefault(issue.field, issue.message)
        return errors


class RemoteOperationError(FreelanceLedgerError):
    """A record layer call failed (network problem or server rejection).

    Attributes:
        retryable: Whether repeating the same call may succeed; used to
            decide whether the user is offered a retry
        operation: Short name of the failed operation, e.g. ``create invoice``
    """

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.retryable = retryable
        self.operation = operation


class NotFoundError(FreelanceLedgerError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, record_id: Union[int, str]):
        super().__init__(f"{entity.capitalize()} {record_id} not found")
        self.entity = entity
        self.record_id = record_id


class TimerStateError(FreelanceLedgerError):
    """A timer operation is not allowed in the timer's current state."""
