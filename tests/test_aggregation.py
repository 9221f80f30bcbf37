from datetime import date

import pytest

from finance_tracker.aggregation import (
    build_dashboard,
    filter_by_month,
    filter_by_type,
    month_key,
    month_label,
    monthly_buckets,
    paginate,
    sort_transactions,
    summarize,
)
from finance_tracker.core.models import Transaction
from finance_tracker.errors import ValidationError


def _tx(id, amount, type, day, category_id=1):
    return Transaction(
        id=id, owner_id=1, category_id=category_id, amount=amount, type=type, date=day
    )


def _sample():
    return [
        _tx(1, 1200.0, "income", date(2024, 1, 1)),
        _tx(2, 50.0, "expense", date(2024, 1, 15)),
        _tx(3, 80.5, "expense", date(2023, 12, 24)),
        _tx(4, 19.5, "expense", date(2024, 3, 3)),
        _tx(5, 300.0, "income", date(2024, 3, 28)),
    ]


def test_summary_of_empty_set():
    summary = summarize([])
    assert (summary.income, summary.expense, summary.balance) == (0.0, 0.0, 0.0)
    assert monthly_buckets([]) == []


def test_summary_sums_same_typed_amounts():
    summary = summarize(_sample())
    assert summary.income == 1500.0
    assert summary.expense == 150.0
    assert summary.balance == summary.income - summary.expense


def test_month_key_and_label():
    assert month_key(date(2024, 1, 15)) == "2024-01"
    assert month_key(date(987, 11, 2)) == "0987-11"
    assert month_label("2024-01") == "Jan 2024"
    assert month_label("2023-12") == "Dec 2023"


def test_monthly_buckets_are_ordered_and_partition_the_set():
    txs = _sample()
    buckets = monthly_buckets(txs)

    assert [b.key for b in buckets] == ["2023-12", "2024-01", "2024-03"]
    assert [b.label for b in buckets] == ["Dec 2023", "Jan 2024", "Mar 2024"]

    seen = [tx.id for b in buckets for tx in b.transactions]
    assert sorted(seen) == [tx.id for tx in txs]
    for bucket in buckets:
        assert all(month_key(tx.date) == bucket.key for tx in bucket.transactions)

    january = buckets[1]
    assert (january.income, january.expense, january.balance) == (1200.0, 50.0, 1150.0)


def test_filter_by_month():
    txs = _sample()
    assert [tx.id for tx in filter_by_month(txs, "2024-03")] == [4, 5]
    assert filter_by_month(txs, "2022-01") == []
    assert filter_by_month(txs, None) == txs
    assert filter_by_month(txs, "all") == txs
    with pytest.raises(ValidationError):
        filter_by_month(txs, "March")


def test_filter_by_type():
    txs = _sample()
    assert [tx.id for tx in filter_by_type(txs, "income")] == [1, 5]
    assert [tx.id for tx in filter_by_type(txs, "EXPENSE")] == [2, 3, 4]
    assert filter_by_type(txs, "all") == txs
    with pytest.raises(ValidationError):
        filter_by_type(txs, "transfer")


def test_sort_transactions():
    txs = _sample()
    assert [tx.id for tx in sort_transactions(txs, "date")] == [5, 4, 2, 1, 3]
    assert [tx.id for tx in sort_transactions(txs, "amount")] == [1, 5, 3, 2, 4]
    with pytest.raises(ValidationError):
        sort_transactions(txs, "merchant")


def test_pages_concatenate_to_the_list():
    items = [_tx(i, float(i), "expense", date(2024, 1, 1)) for i in range(1, 24)]

    first = paginate(items, 1, 10)
    assert first.total == 23
    assert first.total_pages == 3

    pages = [paginate(items, n, 10).items for n in range(1, first.total_pages + 1)]
    assert [len(p) for p in pages] == [10, 10, 3]
    assert [tx for page in pages for tx in page] == items


def test_out_of_range_pages_are_empty():
    items = [_tx(i, 1.0, "expense", date(2024, 1, 1)) for i in range(5)]
    assert paginate(items, 2, 10).items == []
    assert paginate(items, 0, 10).items == []
    assert paginate([], 1, 10).items == []
    assert paginate([], 1, 10).total_pages == 0
    with pytest.raises(ValueError):
        paginate(items, 1, 0)


def test_build_dashboard_filters_only_the_page():
    view = build_dashboard(_sample(), month="2024-01", sort="amount", page=1, page_size=10)

    assert view.summary.income == 1500.0
    assert len(view.months) == 3
    assert [tx.id for tx in view.page.items] == [1, 2]
    assert view.month == "2024-01"
    assert view.available_months[0] == {"key": "2023-12", "label": "Dec 2023"}


def test_build_dashboard_defaults():
    view = build_dashboard(_sample(), month="all", entry_type="all")
    assert view.month is None
    assert view.type is None
    assert view.page.total == 5
    assert [tx.id for tx in view.page.items] == [5, 4, 2, 1, 3]


def test_orphaned_category_still_counts():
    txs = [_tx(1, 50.0, "expense", date(2024, 1, 15), category_id=404)]
    [bucket] = monthly_buckets(txs)
    assert bucket.expense == 50.0
    assert summarize(txs).balance == -50.0
