# ledger_tracker/outputs/base.py
from abc import ABC, abstractmethod


class BaseOutput(ABC):
    @abstractmethod
    def write(self, entries, path=None):
        """Write entries to the chosen sink and return where they went."""
        pass
