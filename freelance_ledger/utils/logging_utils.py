"""Structured logging helpers: per-thread context fields and payload redaction."""

import functools
import logging
import threading
from typing import Any, Callable, Dict, Optional

_thread_local = threading.local()

# Field names whose values never reach a log line
SENSITIVE_FIELDS = {
    "password",
    "token",
    "api_key",
    "secret",
    "private_key",
    "credentials",
    "authorization",
}

# Contact details of clients are masked but keep a recognisable shape
PERSONAL_FIELDS = {"email", "phone", "address"}

REDACTED = "***REDACTED***"


def current_context() -> Dict[str, Any]:
    """Return a copy of the context fields active on this thread."""
    return dict(getattr(_thread_local, "context", {}))


class LogContext:
    """
    Context manager that attaches structured fields to log records.

    Fields live in thread-local storage and are copied onto every record
    emitted on the same thread while the context is active. Nested contexts
    merge; leaving a context restores the outer fields.

    Example:
        with LogContext(invoice_number="INV-2024-006", client_id=4):
            logger.info("Creating invoice")
            # The record carries invoice_number and client_id
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Optional[Dict[str, Any]] = None

    def __enter__(self) -> "LogContext":
        self._previous = current_context()
        _thread_local.context = {**self._previous, **self.fields}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _thread_local.context = self._previous or {}


class _ContextFilter(logging.Filter):
    """Logging filter that copies LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in current_context().items():
            setattr(record, key, value)
        return True


def _mask_personal(value: Any) -> Any:
    if not isinstance(value, str) or not value:
        return value
    if "@" in value:
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"{value[:2]}***"


def sanitize_sensitive_data(data: Any) -> Any:
    """
    Redact secrets and mask contact details in a record payload.

    Dictionaries are processed recursively, as are lists of dictionaries
    (for example a batch of records passed to the record store).

    Args:
        data: Record dictionary, list of records, or any other value

    Returns:
        A sanitized copy; non-container values are returned unchanged

    Example:
        >>> sanitize_sensitive_data({"Name": "Ada", "email": "ada@example.com"})
        {'Name': 'Ada', 'email': 'a***@example.com'}
    """
    if isinstance(data, list):
        return [sanitize_sensitive_data(item) for item in data]
    if not isinstance(data, dict):
        return data

    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).lower()
        if any(sensitive in name for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = REDACTED if value is not None else None
        elif name in PERSONAL_FIELDS:
            sanitized[key] = _mask_personal(value)
        elif isinstance(value, (dict, list)):
            sanitized[key] = sanitize_sensitive_data(value)
        else:
            sanitized[key] = value
    return sanitized


def log_operation(
    func: Optional[Callable] = None, *, level: str = "DEBUG"
) -> Callable:
    """
    Decorator that logs entry, exit and failure of a service operation.

    Exceptions are logged and re-raised unchanged.

    Example:
        @log_operation
        def delete_invoice(self, invoice_id):
            ...

        @log_operation(level="INFO")
        def create_invoice(self, invoice):
            ...
    """

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f.__module__)
            log_level = getattr(logging, level.upper())
            logger.log(log_level, f"Entering {f.__qualname__}")
            try:
                result = f(*args, **kwargs)
            except Exception as e:
                logger.error(f"{f.__qualname__} failed: {type(e).__name__}: {e}")
                raise
            logger.log(log_level, f"Exiting {f.__qualname__}")
            return result

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
