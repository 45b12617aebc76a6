"""Freelance Ledger CLI.

This module provides the command-line interface for the freelance ledger:
clients, projects, tasks, time tracking, expenses and invoices.
"""

import click

from freelance_ledger import __version__
from freelance_ledger.cli.commands import (
    client_group,
    expense_group,
    invoice_group,
    project_group,
    task_group,
    time_group,
)
from freelance_ledger.config.logging_config import LoggingConfig, configure_logging


@click.group(help="Freelance Ledger - Track clients, time, expenses and invoices")
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Debug logging and full stack traces")
def cli(debug: bool):
    """Freelance Ledger CLI main entry point."""
    configure_logging(LoggingConfig.from_env(debug=debug))


# Register commands
cli.add_command(client_group)
cli.add_command(project_group)
cli.add_command(task_group)
cli.add_command(invoice_group)
cli.add_command(time_group)
cli.add_command(expense_group)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
