"""Calculator modules for the freelance ledger."""

from freelance_ledger.calculators.invoice_calculator import (
    DEFAULT_TAX_RATE,
    InvoiceRef,
    InvoiceTotals,
    add_line_item,
    apply_totals,
    calculate_line_amount,
    derive_status,
    generate_invoice_number,
    record_payment,
    recompute_totals,
    refresh_status,
    remove_line_item,
    update_line_item,
)
from freelance_ledger.calculators.ledger_calculator import (
    ProjectSummary,
    calculate_billable_amount,
    calculate_total_expenses,
    calculate_total_hours,
    get_expenses_by_category,
    get_filtered_expenses,
    summarize_project,
)
from freelance_ledger.calculators.time_utils import (
    calculate_duration_minutes,
    compute_duration,
    elapsed_between,
    seconds_to_decimal_hours,
    timedelta_to_decimal_hours,
)

__all__ = [
    # invoice_calculator
    "DEFAULT_TAX_RATE",
    "InvoiceRef",
    "InvoiceTotals",
    "add_line_item",
    "apply_totals",
    "calculate_line_amount",
    "derive_status",
    "generate_invoice_number",
    "record_payment",
    "recompute_totals",
    "refresh_status",
    "remove_line_item",
    "update_line_item",
    # ledger_calculator
    "ProjectSummary",
    "calculate_billable_amount",
    "calculate_total_expenses",
    "calculate_total_hours",
    "get_expenses_by_category",
    "get_filtered_expenses",
    "summarize_project",
    # time_utils
    "calculate_duration_minutes",
    "compute_duration",
    "elapsed_between",
    "seconds_to_decimal_hours",
    "timedelta_to_decimal_hours",
]
