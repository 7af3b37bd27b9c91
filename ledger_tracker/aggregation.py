# ledger_tracker/aggregation.py
"""Pure views over a ledger snapshot: balances, period totals and chart data."""
from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ledger_tracker.core.errors import InvalidInput
from ledger_tracker.core.models import Entry, EntryKind, Ledger

ZERO = Decimal("0.00")
MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


class Period(str, Enum):
    TODAY = "today"
    THIS_MONTH = "this_month"
    THIS_YEAR = "this_year"
    ALL = "all"


@dataclass(frozen=True)
class PeriodFilter:
    """Month-scoped or year-scoped view restriction.

    When both are set the month wins and the year is ignored.
    """

    year_month: Optional[Tuple[int, int]] = None
    year: Optional[int] = None

    @classmethod
    def parse(cls, month: str | None = None, year: str | int | None = None) -> "PeriodFilter":
        if month:
            match = MONTH_PATTERN.match(month)
            if not match or not 1 <= int(match.group(2)) <= 12:
                raise InvalidInput("month", "month must use the YYYY-MM format")
            return cls(year_month=(int(match.group(1)), int(match.group(2))))
        if year not in (None, ""):
            try:
                value = int(year)
            except (TypeError, ValueError):
                raise InvalidInput("year", "year must be a number") from None
            if not 1 <= value <= 9999:
                raise InvalidInput("year", "year is out of range")
            return cls(year=value)
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.year_month is None and self.year is None

    def matches(self, day: date) -> bool:
        if self.year_month is not None:
            return (day.year, day.month) == self.year_month
        if self.year is not None:
            return day.year == self.year
        return True

    def to_dict(self) -> Dict[str, object]:
        month = None
        if self.year_month is not None:
            month = f"{self.year_month[0]:04d}-{self.year_month[1]:02d}"
        return {"month": month, "year": None if month else self.year}


def _sum(entries: Iterable[Entry]) -> Decimal:
    return sum((entry.amount for entry in entries), ZERO)


def _of_kind(entries: Iterable[Entry], kind: EntryKind) -> List[Entry]:
    return [entry for entry in entries if entry.kind == kind]


def current_balance(ledger: Ledger) -> Decimal:
    expenses = _sum(_of_kind(ledger.entries, EntryKind.EXPENSE))
    income = _sum(_of_kind(ledger.entries, EntryKind.INCOME))
    return ledger.starting_balance - expenses + income


def _in_period(day: date, period: Period, today: date) -> bool:
    if period == Period.TODAY:
        return day == today
    if period == Period.THIS_MONTH:
        return (day.year, day.month) == (today.year, today.month)
    if period == Period.THIS_YEAR:
        return day.year == today.year
    return True


def total_by_kind_and_period(
    ledger: Ledger, kind: EntryKind, period: Period, today: date
) -> Decimal:
    """Sum the amounts of ``kind`` entries dated within ``period`` of ``today``."""
    try:
        period = Period(period)
    except ValueError:
        raise InvalidInput("period", "period must be today, this_month, this_year or all") from None
    try:
        kind = EntryKind(kind)
    except ValueError:
        raise InvalidInput("kind", 'kind must be "expense" or "income"') from None
    return _sum(
        entry
        for entry in _of_kind(ledger.entries, kind)
        if _in_period(entry.date, period, today)
    )


def filter_by_period(
    entries: Iterable[Entry], period_filter: PeriodFilter | None
) -> List[Entry]:
    if period_filter is None:
        return list(entries)
    return [entry for entry in entries if period_filter.matches(entry.date)]


def sorted_descending_by_date(entries: Iterable[Entry]) -> List[Entry]:
    # sorted() stays stable with reverse=True, so same-day entries keep their order
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


def group_by_category(entries: Iterable[Entry]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for entry in _of_kind(entries, EntryKind.EXPENSE):
        totals[entry.category] = totals.get(entry.category, ZERO) + entry.amount
    return totals


def daily_totals_for_month(entries: Iterable[Entry], year: int, month: int) -> List[Decimal]:
    """Expense totals per day of month, index 0 being the 1st."""
    if not 1 <= month <= 12:
        raise InvalidInput("month", "month must be between 1 and 12")
    days_in_month = monthrange(year, month)[1]
    totals = [ZERO] * days_in_month
    for entry in _of_kind(entries, EntryKind.EXPENSE):
        if entry.date.year == year and entry.date.month == month:
            totals[entry.date.day - 1] += entry.amount
    return totals
