"""
Error classification for record store failures.

Transport exceptions are turned into RemoteOperationError with a
``retryable`` flag that tells the user whether trying again may help.
"""

import logging
import socket
from enum import Enum
from typing import Optional

import requests.exceptions
from googleapiclient.errors import HttpError

from freelance_ledger.exceptions import RemoteOperationError

logger = logging.getLogger(__name__)

NETWORK_ERRORS = (
    socket.timeout,
    ConnectionError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


class ErrorType(Enum):
    """Classification of error types."""

    RETRYABLE = "retryable"  # 429, 5xx, network errors
    FATAL = "fatal"  # 4xx except 429, auth errors
    UNKNOWN = "unknown"


class ErrorClassifier:
    """
    Classifies record store errors as retryable or fatal.

    Example:
        >>> classifier = ErrorClassifier()
        >>> classifier.classify(socket.timeout())
        <ErrorType.RETRYABLE: 'retryable'>
    """

    def classify(self, exception: Exception) -> ErrorType:
        """Classify an exception into retryable, fatal, or unknown."""
        if isinstance(exception, HttpError):
            status_code = exception.resp.status
            if status_code == 429 or 500 <= status_code < 600:
                return ErrorType.RETRYABLE
            if 400 <= status_code < 500:
                return ErrorType.FATAL

        if isinstance(exception, NETWORK_ERRORS):
            return ErrorType.RETRYABLE

        return ErrorType.UNKNOWN

    def is_retryable(self, exception: Exception) -> bool:
        return self.classify(exception) == ErrorType.RETRYABLE

    def describe(self, exception: Exception) -> str:
        """Human-readable description of a failure."""
        if isinstance(exception, HttpError):
            status_code = exception.resp.status
            if status_code == 429:
                return "Rate limit exceeded (HTTP 429)"
            if status_code in (401, 403):
                return f"Access denied by the storage service (HTTP {status_code})"
            if status_code == 404:
                return "Spreadsheet or sheet not found (HTTP 404)"
            if 500 <= status_code < 600:
                return f"Storage service error (HTTP {status_code})"
            return f"Request rejected by the storage service (HTTP {status_code})"

        if isinstance(exception, (socket.timeout, requests.exceptions.Timeout)):
            return "Network timeout"

        if isinstance(exception, NETWORK_ERRORS):
            return "Network connection error"

        return f"{type(exception).__name__}: {exception}"

    def to_remote_error(
        self, exception: Exception, operation: Optional[str] = None
    ) -> RemoteOperationError:
        """
        Build the RemoteOperationError reported for a failed store call.

        Args:
            exception: The transport exception
            operation: Short name of the operation, e.g. ``create invoice``

        Returns:
            RemoteOperationError; unknown errors are treated as retryable
        """
        error_type = self.classify(exception)
        description = self.describe(exception)
        message = f"Failed to {operation}: {description}" if operation else description
        logger.debug(f"Classified {type(exception).__name__} as {error_type.value}")
        return RemoteOperationError(
            message,
            retryable=error_type != ErrorType.FATAL,
            operation=operation,
        )
