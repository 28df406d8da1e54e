# core/calculator.py
import logging
from datetime import datetime
from typing import List, Optional, Set, Tuple

from .config import DEFAULT_CURRENCY
from .exceptions import CurrencyMismatchError, DebtNotFoundError, InvalidSimulationError
from .schemas import (
    CalculatorMode,
    Debt,
    PaymentFrequency,
    PaymentStrategy,
    SimulationParams,
    SimulationResult,
)
from .simulation import simulate
from .store import DebtStore, NotificationSync

logger = logging.getLogger("debt_calculator")


class DebtCalculator:
    """
    Debt selection for a simulation run.

    An empty selection means "all debts". When the candidates span several
    currencies the calculator starts out with the first debt's currency
    group selected, and refuses to add a debt from another currency.
    """

    def __init__(self, debts: List[Debt], fallback_currency: str = DEFAULT_CURRENCY):
        self.debts = list(debts)
        self.fallback_currency = fallback_currency
        self.selected_ids: Set[str] = set()
        self.has_mixed_currencies = False
        self.primary_currency = fallback_currency
        self._check_currencies()

    def _check_currencies(self) -> None:
        currencies = {d.currency for d in self.debts}
        self.has_mixed_currencies = len(currencies) > 1
        self.primary_currency = self.debts[0].currency if self.debts else self.fallback_currency
        if self.has_mixed_currencies and not self.selected_ids:
            self.selected_ids = {d.id for d in self.debts if d.currency == self.primary_currency}

    def _find(self, debt_id: str) -> Debt:
        for d in self.debts:
            if d.id == debt_id:
                return d
        raise DebtNotFoundError(debt_id)

    @property
    def selected_debts(self) -> List[Debt]:
        if not self.selected_ids:
            return list(self.debts)
        return [d for d in self.debts if d.id in self.selected_ids]

    def toggle(self, debt_id: str) -> None:
        if debt_id in self.selected_ids:
            self.selected_ids.remove(debt_id)
            return
        debt = self._find(debt_id)
        if not self.selected_ids:
            self.primary_currency = debt.currency
            self.selected_ids.add(debt_id)
            return
        current = next(d for d in self.debts if d.id in self.selected_ids).currency
        if debt.currency != current:
            raise CurrencyMismatchError(debt.currency, current)
        self.selected_ids.add(debt_id)

    def select(self, debt_ids: List[str]) -> None:
        self.clear_selection()
        for debt_id in debt_ids:
            if debt_id not in self.selected_ids:
                self.toggle(debt_id)

    def select_all(self) -> None:
        self.selected_ids = {d.id for d in self.debts if d.currency == self.primary_currency}

    def clear_selection(self) -> None:
        self.selected_ids = set()

    def params(self, payment: float, interval: int = 1,
               mode: CalculatorMode = CalculatorMode.PLAN,
               frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
               strategy: PaymentStrategy = PaymentStrategy.AVALANCHE) -> SimulationParams:
        return SimulationParams(
            mode=mode,
            strategy=strategy,
            payment_per_occurrence=payment,
            occurrences_per_period=interval,
            frequency=frequency,
        )

    def calculate(self, payment: float, interval: int = 1,
                  mode: CalculatorMode = CalculatorMode.PLAN,
                  frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
                  strategy: PaymentStrategy = PaymentStrategy.AVALANCHE,
                  now: Optional[datetime] = None,
                  record_schedule: bool = False) -> SimulationResult:
        debts = self.selected_debts
        if debts:
            self.primary_currency = debts[0].currency
        params = self.params(payment, interval, mode, frequency, strategy)
        return simulate(debts, params, now=now, record_schedule=record_schedule)


class LumpSumApplier:
    """Writes an immediate payment's outcome back to the debt store."""

    def __init__(self, store: DebtStore, notifications: NotificationSync):
        self.store = store
        self.notifications = notifications

    def apply(self, result: SimulationResult) -> List[Debt]:
        if result.mode != CalculatorMode.IMMEDIATE:
            raise InvalidSimulationError("Only an immediate lump-sum result can be applied to debts.")
        updated: List[Debt] = []
        for r in result.debt_results:
            if r.total_paid <= 0:
                continue
            debt = self.store.get_debt(r.debt_id)
            if debt is None:
                raise DebtNotFoundError(r.debt_id)
            debt = debt.model_copy(update={"current_balance": r.final_balance})
            self.store.save_debt(debt)
            self.notifications.resync(debt)
            updated.append(debt)
        logger.info("Applied lump sum of %.2f to %d debts", result.total_paid_total, len(updated))
        return updated

    def pay(self, amount: float,
            strategy: PaymentStrategy = PaymentStrategy.AVALANCHE,
            debt_ids: Optional[List[str]] = None,
            now: Optional[datetime] = None) -> Tuple[SimulationResult, List[Debt]]:
        calc = DebtCalculator(self.store.list_debts())
        if debt_ids:
            calc.select(debt_ids)
        result = calc.calculate(amount, mode=CalculatorMode.IMMEDIATE, strategy=strategy, now=now)
        if result.mode != CalculatorMode.IMMEDIATE:
            # empty selection or non-positive amount: nothing to apply
            return result, []
        return result, self.apply(result)
