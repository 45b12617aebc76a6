"""Error handling for CLI commands."""

import logging
import sys
import traceback
from typing import Optional

import click
from pydantic import ValidationError as SettingsError

from freelance_ledger.cli.utils.formatters import format_error, format_warning
from freelance_ledger.exceptions import (
    NotFoundError,
    RemoteOperationError,
    TimerStateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EXIT_CONFIG = 1
EXIT_REMOTE = 2
EXIT_VALIDATION = 3
EXIT_TIMER = 4
EXIT_NOT_FOUND = 7
EXIT_ABORT = 130
EXIT_UNEXPECTED = 255


class ConfigurationError(Exception):
    """Configuration is missing or invalid."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        """
        Initialize configuration error.

        Args:
            message: Error message to display
            recovery_hint: Optional hint for fixing the configuration
        """
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


def _hint(message: str) -> None:
    click.echo(format_warning(f"Hint: {message}"), err=True)


def handle_cli_error(error: BaseException, debug: bool = False) -> int:
    """
    Report an error to the user.

    With ``debug`` the stack trace is printed for every error type.

    Args:
        error: The exception that occurred
        debug: Whether to show the full stack trace

    Returns:
        Exit code for the error type
    """
    code = _report(error)
    if debug:
        click.echo("\nFull stack trace:", err=True)
        click.echo(
            "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            err=True,
        )
    elif code == EXIT_UNEXPECTED:
        click.echo(
            format_warning("\nRun with --debug flag for full stack trace"), err=True
        )
    return code


def _report(error: BaseException) -> int:
    if isinstance(error, ValidationError):
        click.echo(format_error(f"Validation Error: {error.message}"), err=True)
        for field, message in error.field_errors.items():
            if message != error.message:
                click.echo(f"  {field}: {message}", err=True)
        return EXIT_VALIDATION

    if isinstance(error, NotFoundError):
        click.echo(format_error(f"Not Found: {error.message}"), err=True)
        _hint(f"Use the list command to see existing {error.entity}s")
        return EXIT_NOT_FOUND

    if isinstance(error, RemoteOperationError):
        click.echo(format_error(f"Storage Error: {error.message}"), err=True)
        if error.retryable:
            _hint("This may be temporary; run the command again")
        else:
            _hint("Check the spreadsheet id and access rights in your configuration")
        return EXIT_REMOTE

    if isinstance(error, TimerStateError):
        click.echo(format_error(f"Timer Error: {error.message}"), err=True)
        return EXIT_TIMER

    if isinstance(error, ConfigurationError):
        click.echo(format_error(f"Configuration Error: {error.message}"), err=True)
        if error.recovery_hint:
            _hint(error.recovery_hint)
        return EXIT_CONFIG

    if isinstance(error, SettingsError):
        click.echo(format_error("Configuration Error"), err=True)
        for issue in error.errors():
            location = ".".join(str(part) for part in issue["loc"]) or "settings"
            click.echo(f"  {location}: {issue['msg']}", err=True)
        _hint("Check your environment variables and .env file")
        return EXIT_CONFIG

    if isinstance(error, (click.Abort, KeyboardInterrupt)):
        click.echo(format_warning("\nOperation cancelled by user"), err=True)
        return EXIT_ABORT

    logger.error(f"Unexpected error: {error!r}", exc_info=error)
    click.echo(format_error(f"Unexpected Error: {type(error).__name__}"), err=True)
    click.echo(str(error), err=True)
    return EXIT_UNEXPECTED


class ErrorHandler:
    """Context manager that reports errors and exits with their code.

    Example:
        @click.command()
        @click.option("--debug", is_flag=True)
        def my_command(debug):
            with with_error_handling(debug):
                ...
    """

    def __init__(self, show_debug: bool):
        self.show_debug = show_debug

    def __enter__(self) -> "ErrorHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is None or isinstance(exc_val, (SystemExit, click.exceptions.Exit)):
            return False
        sys.exit(handle_cli_error(exc_val, self.show_debug))


def with_error_handling(debug: bool = False) -> ErrorHandler:
    """Standard error handling for a CLI command body."""
    return ErrorHandler(debug)
