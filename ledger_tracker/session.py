# ledger_tracker/session.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

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
from ledger_tracker.core.models import Entry, EntryKind, Ledger
from ledger_tracker.store import LedgerStore


class LedgerSession:
    """Cached ledger snapshot plus the active period filter.

    Every mutation goes through the store and then reloads the snapshot, so
    the derived views never lag behind the data file.
    """

    def __init__(self, store: LedgerStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock
        self.period_filter = PeriodFilter()
        self._ledger: Optional[Ledger] = None

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            self.refresh()
        return self._ledger

    def refresh(self) -> Ledger:
        self._ledger = self.store.load()
        return self._ledger

    def apply_filter(self, month: str | None = None, year: str | int | None = None) -> PeriodFilter:
        self.period_filter = PeriodFilter.parse(month=month, year=year)
        return self.period_filter

    def set_starting_balance(self, amount: Any) -> Decimal:
        try:
            return self.store.set_starting_balance(amount)
        finally:
            self._ledger = None

    def create_entry(self, fields: Dict[str, Any]) -> Entry:
        try:
            return self.store.create_entry(fields)
        finally:
            self._ledger = None

    def update_entry(self, entry_id: str, fields: Dict[str, Any]) -> Entry:
        try:
            return self.store.update_entry(entry_id, fields)
        finally:
            self._ledger = None

    def delete_entry(self, entry_id: str) -> None:
        try:
            self.store.delete_entry(entry_id)
        finally:
            self._ledger = None

    def visible_entries(self) -> List[Entry]:
        return sorted_descending_by_date(
            filter_by_period(self.ledger.entries, self.period_filter)
        )

    def export_entries(self) -> List[Entry]:
        return filter_by_period(self.ledger.entries, self.period_filter)

    def _chart_month(self) -> tuple[int, int]:
        if self.period_filter.year_month is not None:
            return self.period_filter.year_month
        today = self.clock()
        return today.year, today.month

    def _category_scope(self) -> PeriodFilter:
        if self.period_filter.is_empty:
            return PeriodFilter(year_month=self._chart_month())
        return self.period_filter

    def dashboard(self) -> Dict[str, Any]:
        ledger = self.ledger
        today = self.clock()
        year, month = self._chart_month()
        entries = self.visible_entries()
        categories = group_by_category(filter_by_period(ledger.entries, self._category_scope()))

        def expense(period: Period) -> float:
            return float(total_by_kind_and_period(ledger, EntryKind.EXPENSE, period, today))

        return {
            "balance": float(current_balance(ledger)),
            "startingBalance": float(ledger.starting_balance),
            "summary": {
                "expenseToday": expense(Period.TODAY),
                "expenseThisMonth": expense(Period.THIS_MONTH),
                "expenseThisYear": expense(Period.THIS_YEAR),
                "incomeTotal": float(
                    total_by_kind_and_period(ledger, EntryKind.INCOME, Period.ALL, today)
                ),
            },
            "filter": self.period_filter.to_dict(),
            "entries": [entry.to_dict() for entry in entries],
            "empty": not entries,
            "daily": {
                "year": year,
                "month": month,
                "totals": [float(total) for total in daily_totals_for_month(ledger.entries, year, month)],
            },
            "categories": {name: float(total) for name, total in categories.items()},
        }
