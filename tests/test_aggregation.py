import random
from datetime import date
from decimal import Decimal

import pytest

from ledger_tracker.aggregation import (
    Period,
    PeriodFilter,
    current_balance,
    daily_totals_for_month,
    filter_by_period,
    group_by_category,
    sorted_descending_by_date,
    total_by_kind_and_period,
)
from ledger_tracker.core.errors import InvalidInput
from ledger_tracker.core.models import Entry, EntryKind, Ledger


def _entry(id, day, amount, category="food", kind=EntryKind.EXPENSE):
    return Entry(
        id=id,
        kind=kind,
        amount=Decimal(str(amount)),
        category=category,
        date=date.fromisoformat(day),
    )


def _sample_ledger():
    return Ledger(
        starting_balance=Decimal("100.00"),
        entries=[
            _entry("a", "2024-03-05", 30),
            _entry("b", "2024-03-10", 50, category="salary", kind=EntryKind.INCOME),
            _entry("c", "2024-03-10", 4.5, category="transport"),
            _entry("d", "2024-01-20", 12),
            _entry("e", "2023-12-31", 8),
        ],
    )


def test_current_balance_example():
    ledger = Ledger(
        starting_balance=Decimal("100.00"),
        entries=[
            _entry("a", "2024-03-05", 30),
            _entry("b", "2024-03-10", 50, category="salary", kind=EntryKind.INCOME),
        ],
    )
    assert current_balance(ledger) == Decimal("120.00")


def test_current_balance_ignores_order():
    ledger = _sample_ledger()
    expected = current_balance(ledger)
    shuffled = list(ledger.entries)
    random.Random(7).shuffle(shuffled)
    assert current_balance(Ledger(ledger.starting_balance, shuffled)) == expected
    assert expected == Decimal("100.00") - Decimal("54.50") + Decimal("50.00")


def test_empty_ledger_aggregates_are_zero():
    ledger = Ledger()
    today = date(2024, 3, 10)
    assert current_balance(ledger) == 0
    for period in Period:
        assert total_by_kind_and_period(ledger, EntryKind.EXPENSE, period, today) == 0
    assert group_by_category([]) == {}
    assert daily_totals_for_month([], 2024, 3) == [0] * 31


def test_total_by_kind_and_period():
    ledger = _sample_ledger()
    today = date(2024, 3, 10)

    assert total_by_kind_and_period(ledger, EntryKind.EXPENSE, Period.TODAY, today) == Decimal("4.5")
    assert total_by_kind_and_period(ledger, EntryKind.EXPENSE, Period.THIS_MONTH, today) == Decimal("34.5")
    assert total_by_kind_and_period(ledger, EntryKind.EXPENSE, Period.THIS_YEAR, today) == Decimal("46.5")
    assert total_by_kind_and_period(ledger, EntryKind.EXPENSE, Period.ALL, today) == Decimal("54.5")
    assert total_by_kind_and_period(ledger, EntryKind.INCOME, Period.ALL, today) == Decimal("50")
    assert total_by_kind_and_period(ledger, "income", "today", today) == Decimal("50")


def test_filter_by_month_boundaries():
    entries = [_entry("in", "2024-03-31", 1), _entry("out", "2024-04-01", 1), _entry("old", "2023-03-15", 1)]
    march = filter_by_period(entries, PeriodFilter(year_month=(2024, 3)))
    assert [e.id for e in march] == ["in"]


def test_filter_month_takes_precedence_over_year():
    entries = _sample_ledger().entries
    both = PeriodFilter(year_month=(2024, 1), year=2023)
    assert [e.id for e in filter_by_period(entries, both)] == ["d"]
    assert [e.id for e in filter_by_period(entries, PeriodFilter(year=2024))] == ["a", "b", "c", "d"]
    assert len(filter_by_period(entries, PeriodFilter())) == 5
    assert len(filter_by_period(entries, None)) == 5


def test_filter_without_matches_is_empty():
    assert filter_by_period(_sample_ledger().entries, PeriodFilter(year=1999)) == []


def test_period_filter_parse():
    assert PeriodFilter.parse(month="2024-03", year="2023") == PeriodFilter(year_month=(2024, 3))
    assert PeriodFilter.parse(year="2023") == PeriodFilter(year=2023)
    assert PeriodFilter.parse(month="", year="").is_empty
    assert PeriodFilter.parse(month="2024-03").to_dict() == {"month": "2024-03", "year": None}

    with pytest.raises(InvalidInput) as excinfo:
        PeriodFilter.parse(month="2024-13")
    assert excinfo.value.field == "month"
    with pytest.raises(InvalidInput) as excinfo:
        PeriodFilter.parse(year="next")
    assert excinfo.value.field == "year"


def test_sorted_descending_is_stable():
    entries = [
        _entry("first", "2024-03-10", 1),
        _entry("older", "2024-03-01", 1),
        _entry("second", "2024-03-10", 1),
        _entry("newest", "2024-04-02", 1),
    ]
    ordered = sorted_descending_by_date(entries)
    assert [e.id for e in ordered] == ["newest", "first", "second", "older"]


def test_group_by_category_example():
    entries = [
        _entry("1", "2024-03-01", 10, category="food"),
        _entry("2", "2024-03-02", 7, category="transport"),
        _entry("3", "2024-03-03", 5, category="food"),
        _entry("4", "2024-03-03", 999, category="salary", kind=EntryKind.INCOME),
    ]
    grouped = group_by_category(entries)
    assert grouped == {"food": Decimal("15"), "transport": Decimal("7")}
    assert list(grouped) == ["food", "transport"]


def test_daily_totals_for_month():
    entries = _sample_ledger().entries
    totals = daily_totals_for_month(entries, 2024, 3)
    assert len(totals) == 31
    assert totals[4] == Decimal("30")
    # income on the 10th is excluded
    assert totals[9] == Decimal("4.5")
    assert sum(totals) == Decimal("34.5")


@pytest.mark.parametrize("year, days", [(2024, 29), (2023, 28), (2000, 29), (1900, 28)])
def test_daily_totals_february_length(year, days):
    assert len(daily_totals_for_month([], year, 2)) == days


@pytest.mark.parametrize("month", [0, 13])
def test_daily_totals_rejects_bad_month(month):
    with pytest.raises(InvalidInput) as excinfo:
        daily_totals_for_month([], 2024, month)
    assert excinfo.value.field == "month"


def test_total_by_kind_and_period_rejects_unknown_values():
    ledger = _sample_ledger()
    today = date(2024, 3, 10)
    with pytest.raises(InvalidInput) as excinfo:
        total_by_kind_and_period(ledger, "gift", Period.ALL, today)
    assert excinfo.value.field == "kind"
    with pytest.raises(InvalidInput) as excinfo:
        total_by_kind_and_period(ledger, EntryKind.EXPENSE, "fortnight", today)
    assert excinfo.value.field == "period"
