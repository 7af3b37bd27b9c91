# ledger_tracker/core/models.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping

CENTS = Decimal("0.01")


def to_cents(value) -> Decimal:
    """Round a number half-up to two decimal places."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class EntryKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


@dataclass
class Entry:
    id: str
    kind: EntryKind
    amount: Decimal
    category: str
    date: date
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "amount": float(self.amount),
            "category": self.category,
            "description": self.description,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Entry":
        return cls(
            id=str(data["id"]),
            kind=EntryKind(data["kind"]),
            amount=to_cents(data["amount"]),
            category=data["category"],
            description=data.get("description") or "",
            date=date.fromisoformat(data["date"]),
        )


@dataclass
class Ledger:
    starting_balance: Decimal = Decimal("0.00")
    entries: List[Entry] = field(default_factory=list)

    def find(self, entry_id: str) -> int | None:
        for idx, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return idx
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startingBalance": float(self.starting_balance),
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ledger":
        return cls(
            starting_balance=to_cents(data.get("startingBalance", 0)),
            entries=[Entry.from_dict(item) for item in data.get("entries", [])],
        )


_REQUEST_FIELDS = ("kind", "amount", "category", "description", "date")


@dataclass
class EntryDraft:
    """Unvalidated create request; the store checks every field."""

    kind: Any = None
    amount: Any = None
    category: Any = None
    description: Any = None
    date: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EntryDraft":
        return cls(**{name: data.get(name) for name in _REQUEST_FIELDS})


@dataclass
class EntryPatch:
    """Unvalidated partial update; ``None`` means the field was not supplied."""

    kind: Any = None
    amount: Any = None
    category: Any = None
    description: Any = None
    date: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EntryPatch":
        return cls(**{name: data.get(name) for name in _REQUEST_FIELDS})

    def supplied(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


def apply_changes(entry: Entry, changes: Mapping[str, Any]) -> Entry:
    return replace(entry, **changes)
