"""Time and expense ledger calculations.

This module implements the project-level aggregates:
- Total hours logged and their billable value
- Expense totals, grouped by category
- Category filtering for expense lists
- A complete per-project summary for reporting

The calculations build upon the time_utils module and the entity models.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Union

from freelance_ledger.models.expense import Expense, ExpenseCategory
from freelance_ledger.models.project import Project
from freelance_ledger.models.time_entry import TimeEntry
from freelance_ledger.utils.converters import round2, to_decimal

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


@dataclass
class ProjectSummary:
    """Aggregated time and expense figures for one project.

    Attributes:
        project_id: Project record id
        project_name: Project name
        total_hours: Sum of logged hours
        hourly_rate: Rate used to value the hours
        total_billable: total_hours × hourly_rate
        total_expenses: Sum of all expenses
        billable_expenses: Sum of expenses chargeable to the client
        reimbursable_expenses: Sum of expenses owed to the freelancer
        expenses_by_category: Expense totals per category
        budget: Project budget
        budget_remaining: budget - total_billable - billable_expenses
        entry_count: Number of time entries

    Example:
        >>> summary = ProjectSummary(
        ...     project_id=1,
        ...     project_name="Website Redesign",
        ...     total_hours=Decimal("10.00"),
        ...     hourly_rate=Decimal("85"),
        ...     total_billable=Decimal("850.00"),
        ...     total_expenses=Decimal("0.00"),
        ...     billable_expenses=Decimal("0.00"),
        ...     reimbursable_expenses=Decimal("0.00"),
        ... )
        >>> summary.total_billable
        Decimal('850.00')
    """

    project_id: Union[int, None]
    project_name: str
    total_hours: Decimal
    hourly_rate: Decimal
    total_billable: Decimal
    total_expenses: Decimal
    billable_expenses: Decimal
    reimbursable_expenses: Decimal
    expenses_by_category: Dict[ExpenseCategory, Decimal] = field(default_factory=dict)
    budget: Decimal = Decimal("0")
    budget_remaining: Decimal = Decimal("0.00")
    entry_count: int = 0


def calculate_total_hours(entries: Iterable[TimeEntry]) -> Decimal:
    """Sum the durations of time entries.

    Example:
        >>> calculate_total_hours([])
        Decimal('0.00')
    """
    return round2(sum((entry.duration for entry in entries), Decimal("0")))


def calculate_billable_amount(
    total_hours: Union[str, Decimal], hourly_rate: Union[str, Decimal]
) -> Decimal:
    """Value logged hours at an hourly rate.

    Example:
        >>> calculate_billable_amount(Decimal("12.5"), Decimal("80"))
        Decimal('1000.00')
    """
    return round2(to_decimal(total_hours) * to_decimal(hourly_rate))


def calculate_total_expenses(expenses: Iterable[Expense]) -> Decimal:
    """Sum expense amounts."""
    return round2(sum((expense.amount for expense in expenses), Decimal("0")))


def get_expenses_by_category(
    expenses: Iterable[Expense],
) -> Dict[ExpenseCategory, Decimal]:
    """Total expense amounts per category.

    Only categories that occur in the input appear in the result.

    Args:
        expenses: Expenses to group

    Returns:
        Mapping of category to summed amount

    Example:
        >>> get_expenses_by_category([])
        {}
    """
    totals: Dict[ExpenseCategory, Decimal] = defaultdict(lambda: Decimal("0"))
    for expense in expenses:
        totals[expense.category] += expense.amount
    return {category: round2(amount) for category, amount in totals.items()}


def get_filtered_expenses(
    expenses: Sequence[Expense], category: Union[str, ExpenseCategory]
) -> List[Expense]:
    """Filter expenses by category; ``"all"`` returns every expense.

    Raises:
        ValueError: If the category is neither "all" nor a known category
    """
    if isinstance(category, str) and category.strip().lower() == ALL_CATEGORIES:
        return list(expenses)
    wanted = ExpenseCategory.parse(category)
    return [expense for expense in expenses if expense.category == wanted]


def summarize_project(
    project: Project,
    time_entries: Sequence[TimeEntry],
    expenses: Sequence[Expense],
) -> ProjectSummary:
    """Build the time and expense summary for a project.

    Entries and expenses belonging to other projects are ignored.

    Args:
        project: Project being summarized
        time_entries: Logged time (may include other projects)
        expenses: Expenses (may include other projects)

    Returns:
        ProjectSummary with all aggregates
    """
    own_entries = [e for e in time_entries if e.project_id == project.id]
    own_expenses = [e for e in expenses if e.project_id == project.id]

    total_hours = calculate_total_hours(own_entries)
    total_billable = calculate_billable_amount(total_hours, project.hourly_rate)
    billable_expenses = calculate_total_expenses(e for e in own_expenses if e.billable)
    reimbursable_expenses = calculate_total_expenses(
        e for e in own_expenses if e.reimbursable
    )
    budget_remaining = round2(project.budget - total_billable - billable_expenses)

    logger.debug(
        f"Project {project.id} summary: {total_hours}h, "
        f"{len(own_expenses)} expense(s)"
    )

    return ProjectSummary(
        project_id=project.id,
        project_name=project.name,
        total_hours=total_hours,
        hourly_rate=project.hourly_rate,
        total_billable=total_billable,
        total_expenses=calculate_total_expenses(own_expenses),
        billable_expenses=billable_expenses,
        reimbursable_expenses=reimbursable_expenses,
        expenses_by_category=get_expenses_by_category(own_expenses),
        budget=project.budget,
        budget_remaining=budget_remaining,
        entry_count=len(own_entries),
    )
