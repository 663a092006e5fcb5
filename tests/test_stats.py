# tests/test_stats.py
from datetime import datetime, timedelta, timezone

import pytest

from expense_client.stats import (
    ALL_CATEGORIES,
    TimeRange,
    Transaction,
    build_dashboard,
    compute_stats,
    filter_by_category,
    filter_by_time_range,
    format_amount,
)

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def tx(id, amount, type="expense", category="Food", date=NOW, title=None):
    return Transaction(id=id, title=title or f"tx-{id}", amount=amount, type=type, category=category, date=date)


@pytest.fixture
def transactions():
    return [
        tx(1, 2000, "income", "Salary", datetime(2024, 5, 15, 8, 0, tzinfo=timezone.utc)),
        tx(2, 4.5, "expense", "Food", datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc)),
        tx(3, 300, "investment", "Stocks", datetime(2024, 5, 2, 10, 0, tzinfo=timezone.utc)),
        tx(4, 50, "withdrawal", "Savings", datetime(2024, 2, 20, 10, 0, tzinfo=timezone.utc)),
        tx(5, 80, "expense", "Transport", datetime(2023, 12, 31, 10, 0, tzinfo=timezone.utc)),
    ]


def test_empty_input_yields_zero_stats():
    stats = compute_stats([])

    assert stats.total_income == 0
    assert stats.total_expense == 0
    assert stats.total_invested == 0
    assert stats.total_withdrawn == 0
    assert stats.total_balance == 0


def test_balance_formula(transactions):
    stats = compute_stats(transactions)

    assert stats.total_income == pytest.approx(2000)
    assert stats.total_expense == pytest.approx(84.5)
    assert stats.total_invested == pytest.approx(300)
    assert stats.total_withdrawn == pytest.approx(50)
    assert stats.total_balance == pytest.approx(
        stats.total_income + stats.total_withdrawn - stats.total_expense - stats.total_invested
    )


def test_unknown_types_are_ignored_by_totals():
    stats = compute_stats([tx(1, 10, "gift"), tx(2, 5, "income")])

    assert stats.total_income == 5
    assert stats.total_balance == 5


@pytest.mark.parametrize(
    "time_range, expected_ids",
    [
        (TimeRange.DAILY, [1, 2]),
        (TimeRange.MONTHLY, [1, 2, 3]),
        (TimeRange.YEARLY, [1, 2, 3, 4]),
        (TimeRange.ALL, [1, 2, 3, 4, 5]),
    ],
)
def test_time_range_filters(transactions, time_range, expected_ids):
    result = filter_by_time_range(transactions, time_range, now=NOW)

    assert [item.id for item in result] == expected_ids


def test_time_range_accepts_plain_strings(transactions):
    assert len(filter_by_time_range(transactions, "yearly", now=NOW)) == 4


def test_all_is_identity_regardless_of_date():
    far = [tx(1, 1, date=datetime(1999, 1, 1, tzinfo=timezone.utc)), tx(2, 1, date=datetime(2090, 1, 1, tzinfo=timezone.utc))]

    assert filter_by_time_range(far, "all") == far


def test_daily_uses_the_timezone_of_now():
    # 23:30 UTC del 14 ya es día 15 en UTC+2
    late = tx(1, 1, date=datetime(2024, 5, 14, 23, 30, tzinfo=timezone.utc))
    now_plus_two = datetime(2024, 5, 15, 9, 0, tzinfo=timezone(timedelta(hours=2)))

    assert filter_by_time_range([late], "daily", now=now_plus_two) == [late]
    assert filter_by_time_range([late], "daily", now=NOW) == []


def test_naive_dates_are_treated_as_utc():
    naive = tx(1, 1, date=datetime(2024, 5, 15, 1, 0))

    assert filter_by_time_range([naive], "daily", now=NOW) == [naive]


def test_invalid_time_range_raises(transactions):
    with pytest.raises(ValueError):
        filter_by_time_range(transactions, "weekly", now=NOW)


def test_category_all_is_identity(transactions):
    assert filter_by_category(transactions, ALL_CATEGORIES) == transactions


def test_category_filter_is_exact_match(transactions):
    assert [item.id for item in filter_by_category(transactions, "Food")] == [2]
    assert filter_by_category(transactions, "food") == []


def test_category_narrows_list_but_not_totals(transactions):
    everything = build_dashboard(transactions, TimeRange.MONTHLY, ALL_CATEGORIES, now=NOW)
    food_only = build_dashboard(transactions, TimeRange.MONTHLY, "Food", now=NOW)

    assert [item.id for item in food_only.transactions] == [2]
    assert len(everything.transactions) == 3
    assert food_only.stats == everything.stats
    assert food_only.stats.total_balance == pytest.approx(2000 - 4.5 - 300)


def test_scenario_balance():
    items = [
        tx(1, 2000, "income", "Salary", title="Paycheck"),
        tx(2, 4.5, "expense", "Food", title="Coffee"),
    ]

    view = build_dashboard(items, "all", ALL_CATEGORIES)

    assert len(view.transactions) == 2
    assert view.stats.total_balance == pytest.approx(1995.5)
    assert format_amount(view.stats.total_balance) == "1995.50"


def test_format_amount_rounds_to_two_decimals():
    assert format_amount(0) == "0.00"
    assert format_amount(4.5) == "4.50"
    assert format_amount(1 / 3) == "0.33"
