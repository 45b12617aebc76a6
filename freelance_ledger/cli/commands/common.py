"""Helpers shared by the CLI commands."""

import functools
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

import click

from freelance_ledger.config.settings import LedgerConfig, get_config
from freelance_ledger.services.factory import Services, create_services


class CLIState:
    """Objects shared by the commands of one CLI invocation.

    Tests pass a prepared state through ``CliRunner.invoke(obj=...)``.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        services: Optional[Services] = None,
    ):
        self._config = config
        self._services = services

    @property
    def config(self) -> LedgerConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def services(self) -> Services:
        if self._services is None:
            self._services = create_services(self.config)
        return self._services


def get_state() -> CLIState:
    """State of the running CLI invocation."""
    root = click.get_current_context().find_root()
    if not isinstance(root.obj, CLIState):
        root.obj = CLIState()
    return root.obj


def debug_option(f: Callable) -> Callable:
    """Add ``--debug`` to a command; it shows stack traces on errors."""

    @click.option("--debug", is_flag=True, help="Show full stack traces on errors")
    @functools.wraps(f)
    def wrapper(*args, debug: bool = False, **kwargs):
        ctx = click.get_current_context()
        debug = debug or bool(ctx.find_root().params.get("debug"))
        return f(*args, debug=debug, **kwargs)

    return wrapper


def collect_edits(
    changes: Mapping[str, Any], clear: Iterable[str] = ()
) -> Dict[str, Any]:
    """
    Field changes requested by the options of an edit command.

    Options left unset keep the stored value; fields named by ``--clear``
    are emptied.

    Raises:
        click.UsageError: If no option changes anything
    """
    edits = {name: value for name, value in changes.items() if value is not None}
    edits.update((name, None) for name in clear)
    if not edits:
        raise click.UsageError("Nothing to change; pass at least one option")
    return edits


def apply_edits(form: Any, edits: Mapping[str, Any]) -> None:
    """Set each edited field on an open form."""
    for name, value in edits.items():
        form.set(name, value)
