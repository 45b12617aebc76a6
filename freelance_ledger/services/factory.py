"""
Builds the record store and services for the configured backend.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from freelance_ledger.config.settings import LedgerConfig, get_config
from freelance_ledger.services.entity_service import (
    ClientService,
    ExpenseService,
    LedgerService,
    ProjectService,
    StoreGateway,
    TaskService,
    TimeEntryService,
)
from freelance_ledger.services.google_sheets_service import GoogleSheetsService
from freelance_ledger.services.invoice_service import InvoiceService
from freelance_ledger.services.memory_store import InMemoryRecordStore
from freelance_ledger.services.record_store import RecordStore
from freelance_ledger.services.sheets_record_store import SheetsRecordStore

logger = logging.getLogger(__name__)


def create_store(config: Optional[LedgerConfig] = None) -> RecordStore:
    """
    Create the record store selected by ``STORE_BACKEND``.

    ``local`` keeps records in memory, persisted to ``LOCAL_STORE_PATH``.
    ``sheets`` stores each table in a tab of ``SPREADSHEET_ID``, using the
    configured service account or Application Default Credentials.
    """
    config = config or get_config()
    if config.store_backend == "sheets":
        credentials = (
            config.get_google_service_account_info()
            if config.has_service_account
            else None
        )
        sheets = GoogleSheetsService(
            credentials=credentials, scopes=config.google_scopes
        )
        logger.info(f"Using Google Sheets store {config.spreadsheet_id}")
        return SheetsRecordStore(sheets, config.spreadsheet_id)

    logger.info(f"Using local store {config.local_store_path}")
    return InMemoryRecordStore(path=config.local_store_path)


@dataclass
class Services:
    """Every service of the ledger, sharing one store."""

    store: RecordStore
    clients: ClientService
    projects: ProjectService
    tasks: TaskService
    time_entries: TimeEntryService
    expenses: ExpenseService
    invoices: InvoiceService
    ledger: LedgerService


def create_services(
    config: Optional[LedgerConfig] = None, store: Optional[RecordStore] = None
) -> Services:
    """Wire all services to one store (created from config when not given)."""
    config = config or get_config()
    store = store if store is not None else create_store(config)
    gateway = StoreGateway(store)
    return Services(
        store=store,
        clients=ClientService(store, gateway),
        projects=ProjectService(store, gateway),
        tasks=TaskService(store, gateway),
        time_entries=TimeEntryService(store, gateway),
        expenses=ExpenseService(store, gateway),
        invoices=InvoiceService(
            store,
            tax_rate=config.tax_rate,
            page_size=config.page_size,
            gateway=gateway,
        ),
        ledger=LedgerService(store, gateway),
    )
