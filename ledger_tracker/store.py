# ledger_tracker/store.py
from __future__ import annotations

import contextlib
import json
import logging
import math
import os
import random
import re
import string
import tempfile
import threading
import time
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

from ledger_tracker.core.errors import InvalidInput, NotFound, StorageUnavailable
from ledger_tracker.core.models import (
    Entry,
    EntryDraft,
    EntryKind,
    EntryPatch,
    Ledger,
    apply_changes,
    to_cents,
)

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ID_ALPHABET = string.digits + string.ascii_lowercase


def _generate_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}{suffix}"


def _validate_kind(value: Any) -> EntryKind:
    try:
        return EntryKind(value)
    except ValueError:
        raise InvalidInput("kind", 'kind must be "expense" or "income"') from None


def _validate_number(value: Any, field: str) -> Decimal:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidInput(field, f"{field} must be a number")
    try:
        if not math.isfinite(value):
            raise InvalidInput(field, f"{field} must be a finite number")
        return to_cents(value)
    except (InvalidOperation, ValueError, OverflowError):
        raise InvalidInput(field, f"{field} must be a number") from None


def _validate_amount(value: Any) -> Decimal:
    amount = _validate_number(value, "amount")
    if amount <= 0:
        raise InvalidInput("amount", "amount must be greater than zero")
    return amount


def _validate_category(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("category", "category is required")
    return value.strip()


def _validate_description(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidInput("description", "description must be text")
    return value.strip()


def _validate_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidInput("date", "date must use the YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInput("date", f"{value} is not a valid calendar date") from None


_FIELD_VALIDATORS = {
    "kind": _validate_kind,
    "amount": _validate_amount,
    "category": _validate_category,
    "description": _validate_description,
    "date": _validate_date,
}


class LedgerStore:
    """Durable CRUD over a single JSON ledger file.

    Each operation reloads the whole file, applies its change and rewrites
    the file. All cycles on one store share a lock, so concurrent callers
    cannot overwrite each other's changes.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def load(self) -> Ledger:
        with self._lock:
            if not self.path.exists():
                ledger = Ledger()
                logger.info("Initialising empty ledger at %s", self.path)
                self._persist(ledger)
                return ledger
            try:
                with self.path.open("r", encoding="utf-8") as fp:
                    data = json.load(fp)
                ledger = Ledger.from_dict(data)
            except OSError as exc:
                logger.error("Could not read ledger file %s: %s", self.path, exc)
                raise StorageUnavailable(f"Could not read {self.path}") from exc
            except (ValueError, KeyError, TypeError, AttributeError, InvalidOperation) as exc:
                logger.error("Ledger file %s is corrupt: %s", self.path, exc)
                raise StorageUnavailable(f"Ledger file {self.path} is corrupt") from exc
            logger.debug("Loaded %d entries from %s", len(ledger.entries), self.path)
            return ledger

    def _persist(self, ledger: Ledger) -> None:
        payload = json.dumps(ledger.to_dict(), indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            logger.error("Could not write ledger file %s: %s", self.path, exc)
            raise StorageUnavailable(f"Could not write {self.path}") from exc
        logger.debug("Persisted %d entries to %s", len(ledger.entries), self.path)

    def set_starting_balance(self, amount: Any) -> Decimal:
        balance = _validate_number(amount, "amount")
        with self._lock:
            ledger = self.load()
            ledger.starting_balance = balance
            self._persist(ledger)
        logger.info("Starting balance set to %s", balance)
        return balance

    def create_entry(self, draft: EntryDraft | Dict[str, Any]) -> Entry:
        if not isinstance(draft, EntryDraft):
            draft = EntryDraft.from_mapping(draft)
        values = {name: check(getattr(draft, name)) for name, check in _FIELD_VALIDATORS.items()}

        with self._lock:
            ledger = self.load()
            taken = {entry.id for entry in ledger.entries}
            entry_id = _generate_id()
            while entry_id in taken:
                entry_id = _generate_id()
            entry = Entry(id=entry_id, **values)
            ledger.entries.append(entry)
            self._persist(ledger)
        logger.info("Created %s entry %s (%s)", entry.kind.value, entry.id, entry.amount)
        return entry

    def update_entry(self, entry_id: str, patch: EntryPatch | Dict[str, Any]) -> Entry:
        if not isinstance(patch, EntryPatch):
            patch = EntryPatch.from_mapping(patch)
        changes = {
            name: _FIELD_VALIDATORS[name](value)
            for name, value in patch.supplied().items()
        }

        with self._lock:
            ledger = self.load()
            idx = ledger.find(entry_id)
            if idx is None:
                raise NotFound(entry_id)
            entry = apply_changes(ledger.entries[idx], changes)
            ledger.entries[idx] = entry
            self._persist(ledger)
        logger.info("Updated entry %s (%s)", entry_id, ", ".join(changes) or "no changes")
        return entry

    def delete_entry(self, entry_id: str) -> None:
        with self._lock:
            ledger = self.load()
            idx = ledger.find(entry_id)
            if idx is None:
                raise NotFound(entry_id)
            del ledger.entries[idx]
            self._persist(ledger)
        logger.info("Deleted entry %s", entry_id)
