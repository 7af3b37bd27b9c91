# ledger_tracker/core/errors.py


class LedgerError(Exception):
    """Base class for every failure a ledger operation can report."""


class InvalidInput(LedgerError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFound(LedgerError):
    def __init__(self, entry_id: str):
        super().__init__(f"Entry '{entry_id}' not found")
        self.entry_id = entry_id


class StorageUnavailable(LedgerError):
    """The data file could not be read, parsed or written."""
