"""
Record access for the freelance ledger.

This package provides:
- The record store protocol with in-memory and Google Sheets backends
- Explicit adapters between stored records and the models
- Entity services that translate store failures into ledger errors
- The invoice service, which keeps invoices and their items in step
"""

from .entity_service import (
    ClientService,
    EntityService,
    ExpenseService,
    LedgerService,
    ProjectService,
    StoreGateway,
    TaskService,
    TimeEntryService,
)
from .error_classifier import ErrorClassifier, ErrorType
from .factory import Services, create_services, create_store
from .google_sheets_service import GoogleSheetsService
from .invoice_service import InvoicePage, InvoiceService
from .memory_store import InMemoryRecordStore
from .record_store import (
    DeleteResult,
    FetchQuery,
    FetchResult,
    MutationResult,
    Operator,
    OrderBy,
    PagingInfo,
    RecordResult,
    RecordStore,
    WhereCondition,
)
from .sheets_record_store import SheetsRecordStore

__all__ = [
    "ClientService",
    "DeleteResult",
    "EntityService",
    "ErrorClassifier",
    "ErrorType",
    "ExpenseService",
    "FetchQuery",
    "FetchResult",
    "GoogleSheetsService",
    "InMemoryRecordStore",
    "InvoicePage",
    "InvoiceService",
    "LedgerService",
    "MutationResult",
    "Operator",
    "OrderBy",
    "PagingInfo",
    "ProjectService",
    "RecordResult",
    "RecordStore",
    "Services",
    "SheetsRecordStore",
    "StoreGateway",
    "TaskService",
    "TimeEntryService",
    "WhereCondition",
    "create_services",
    "create_store",
]
