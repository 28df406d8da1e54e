# core/store.py
import logging
from typing import Dict, List, Optional, Protocol

from .schemas import Debt

logger = logging.getLogger("debt_store")


class DebtStore(Protocol):
    """Where the calculator reads debts from and writes applied payments to."""

    def list_debts(self) -> List[Debt]:  # pragma: no cover - interface
        ...

    def get_debt(self, debt_id: str) -> Optional[Debt]:  # pragma: no cover - interface
        ...

    def save_debt(self, debt: Debt) -> None:  # pragma: no cover - interface
        ...


class NotificationSync(Protocol):
    """Refreshes reminders for a debt after its balance changes."""

    def resync(self, debt: Debt) -> None:  # pragma: no cover - interface
        ...


class InMemoryDebtStore:
    def __init__(self, debts: Optional[List[Debt]] = None):
        self._debts: Dict[str, Debt] = {}
        for d in debts or []:
            self._debts[d.id] = d

    def list_debts(self) -> List[Debt]:
        return list(self._debts.values())

    def get_debt(self, debt_id: str) -> Optional[Debt]:
        return self._debts.get(debt_id)

    def save_debt(self, debt: Debt) -> None:
        self._debts[debt.id] = debt


class LoggingNotificationSync:
    """Records resync requests; delivering notifications is out of scope."""

    def __init__(self):
        self.resynced: List[str] = []

    def resync(self, debt: Debt) -> None:
        logger.info("Resync reminders for debt %s (balance %.2f)", debt.id, debt.current_balance)
        self.resynced.append(debt.id)
