"""Read-side views over a user's transactions.

Everything here is a pure function of the transaction list it is given:
nothing is cached or persisted, and callers recompute on every request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from finance_tracker.core.models import ENTRY_TYPES, EXPENSE, INCOME, MonthBucket, Transaction
from finance_tracker.errors import ValidationError

DEFAULT_PAGE_SIZE = 10
SORT_KEYS = ("date", "amount")
ALL = "all"

_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass
class Summary:
    income: float = 0.0
    expense: float = 0.0

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass
class Page:
    items: List[Transaction]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size)


@dataclass
class Dashboard:
    summary: Summary
    months: List[MonthBucket]
    page: Page
    month: Optional[str] = None
    sort: str = "date"
    type: Optional[str] = None
    available_months: List[Dict[str, str]] = field(default_factory=list)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_label(key: str) -> str:
    """Display label for a ``YYYY-MM`` key, e.g. ``Jan 2024``."""
    year, month = key.split("-")
    return f"{_MONTH_NAMES[int(month) - 1]} {year}"


def summarize(transactions: Iterable[Transaction]) -> Summary:
    summary = Summary()
    for tx in transactions:
        if tx.type == INCOME:
            summary.income += tx.amount
        elif tx.type == EXPENSE:
            summary.expense += tx.amount
    return summary


def monthly_buckets(transactions: Iterable[Transaction]) -> List[MonthBucket]:
    """Group transactions by calendar month, oldest month first."""
    buckets: Dict[str, MonthBucket] = {}
    for tx in transactions:
        key = month_key(tx.date)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = MonthBucket(key=key, label=month_label(key))
        bucket.transactions.append(tx)
        if tx.type == INCOME:
            bucket.income += tx.amount
        elif tx.type == EXPENSE:
            bucket.expense += tx.amount
    return [buckets[key] for key in sorted(buckets)]


def _validate_month(key: str) -> str:
    try:
        year, month = key.split("-")
        if len(year) != 4 or len(month) != 2 or not 1 <= int(month) <= 12:
            raise ValueError(key)
        int(year)
    except ValueError as exc:
        raise ValidationError("month must be formatted as YYYY-MM", field="month") from exc
    return key


def filter_by_month(transactions: Sequence[Transaction], key: str | None) -> List[Transaction]:
    """
    Return only those transactions whose date falls in the given YYYY-MM.
    ``None`` or ``"all"`` keeps every transaction.
    """
    if not key or key == ALL:
        return list(transactions)
    key = _validate_month(key)
    return [tx for tx in transactions if month_key(tx.date) == key]


def filter_by_type(transactions: Sequence[Transaction], entry_type: str | None) -> List[Transaction]:
    if not entry_type or entry_type.lower() == ALL:
        return list(transactions)
    entry_type = entry_type.lower()
    if entry_type not in ENTRY_TYPES:
        raise ValidationError("type must be all, income or expense", field="type")
    return [tx for tx in transactions if tx.type == entry_type]


def sort_transactions(transactions: Sequence[Transaction], by: str = "date") -> List[Transaction]:
    """Newest date first, or largest amount first. Ties keep their input order."""
    if by == "date":
        return sorted(transactions, key=lambda tx: tx.date, reverse=True)
    if by == "amount":
        return sorted(transactions, key=lambda tx: tx.amount, reverse=True)
    raise ValidationError("sort must be date or amount", field="sort")


def paginate(items: Sequence[Transaction], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """Slice out 1-based page *page*; out-of-range pages come back empty."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    if page < 1:
        chunk: List[Transaction] = []
    else:
        start = (page - 1) * page_size
        chunk = list(items[start:start + page_size])
    return Page(items=chunk, page=page, page_size=page_size, total=len(items))


def build_dashboard(
    transactions: Sequence[Transaction],
    month: str | None = None,
    sort: str = "date",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    entry_type: str | None = None,
) -> Dashboard:
    """Everything the dashboard shows, computed from the full transaction set.

    Summary and month buckets always cover every transaction; *month* and
    *entry_type* only narrow the paged list.
    """
    months = monthly_buckets(transactions)
    working = filter_by_type(filter_by_month(transactions, month), entry_type)
    working = sort_transactions(working, sort)
    return Dashboard(
        summary=summarize(transactions),
        months=months,
        page=paginate(working, page, page_size),
        month=month if month and month != ALL else None,
        sort=sort,
        type=entry_type.lower() if entry_type and entry_type.lower() != ALL else None,
        available_months=[{"key": b.key, "label": b.label} for b in months],
    )
