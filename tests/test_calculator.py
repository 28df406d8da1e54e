from datetime import datetime

import pytest

from core.config import DEFAULT_CURRENCY
from core.calculator import DebtCalculator, LumpSumApplier
from core.exceptions import CurrencyMismatchError, DebtNotFoundError, InvalidSimulationError
from core.schemas import CalculatorMode, Debt, PaymentStrategy
from core.store import InMemoryDebtStore, LoggingNotificationSync


def mixed_debts():
    return [
        Debt(id="usd-card", name="Visa", current_balance=1200, apr=22, currency="USD"),
        Debt(id="eur-loan", name="Bank Loan", current_balance=5000, apr=6, currency="EUR"),
        Debt(id="usd-car", name="Car", current_balance=8000, apr=4, currency="USD"),
    ]


def test_single_currency_selection_defaults_to_all():
    debts = [d for d in mixed_debts() if d.currency == "USD"]
    calc = DebtCalculator(debts)
    assert not calc.has_mixed_currencies
    assert calc.primary_currency == "USD"
    assert calc.selected_ids == set()
    assert [d.id for d in calc.selected_debts] == ["usd-card", "usd-car"]


def test_mixed_currencies_auto_select_first_currency_group():
    calc = DebtCalculator(mixed_debts())
    assert calc.has_mixed_currencies
    assert calc.primary_currency == "USD"
    assert calc.selected_ids == {"usd-card", "usd-car"}


def test_toggle_rejects_other_currency():
    calc = DebtCalculator(mixed_debts())
    with pytest.raises(CurrencyMismatchError) as exc:
        calc.toggle("eur-loan")
    assert exc.value.status_code == 400
    assert "EUR" in exc.value.message
    assert "eur-loan" not in calc.selected_ids


def test_toggle_removes_and_readds():
    calc = DebtCalculator(mixed_debts())
    calc.toggle("usd-card")
    assert calc.selected_ids == {"usd-car"}
    calc.toggle("usd-card")
    assert calc.selected_ids == {"usd-card", "usd-car"}


def test_toggle_on_empty_selection_switches_primary_currency():
    calc = DebtCalculator(mixed_debts())
    calc.clear_selection()
    calc.toggle("eur-loan")
    assert calc.primary_currency == "EUR"
    assert [d.id for d in calc.selected_debts] == ["eur-loan"]
    calc.select_all()
    assert calc.selected_ids == {"eur-loan"}


def test_toggle_unknown_debt():
    calc = DebtCalculator(mixed_debts())
    calc.clear_selection()
    with pytest.raises(DebtNotFoundError):
        calc.toggle("missing")


def test_select_replaces_selection():
    calc = DebtCalculator(mixed_debts())
    calc.select(["usd-car"])
    assert calc.selected_ids == {"usd-car"}
    with pytest.raises(CurrencyMismatchError):
        calc.select(["usd-car", "eur-loan"])


def test_calculate_uses_selection():
    calc = DebtCalculator(mixed_debts())
    calc.select(["usd-card"])
    res = calc.calculate(300, now=datetime(2026, 3, 1))
    assert [r.debt_id for r in res.debt_results] == ["usd-card"]
    assert res.total_starting_balance == 1200
    assert res.is_paid_off


def test_calculate_without_debts_is_empty():
    calc = DebtCalculator([])
    assert calc.primary_currency == DEFAULT_CURRENCY
    res = calc.calculate(100)
    assert res.total_occurrences is None
    assert res.debt_results == []


def store_with_debts():
    return InMemoryDebtStore([
        Debt(id="a", name="A", current_balance=100, apr=10),
        Debt(id="b", name="B", current_balance=200, apr=5),
    ])


def test_apply_lump_sum_updates_store_and_resyncs():
    store = store_with_debts()
    sync = LoggingNotificationSync()
    result, updated = LumpSumApplier(store, sync).pay(150, strategy=PaymentStrategy.PROPORTIONAL)
    assert result.mode == CalculatorMode.IMMEDIATE
    assert store.get_debt("a").current_balance == 0
    assert store.get_debt("b").current_balance == 150
    assert [d.id for d in updated] == ["a", "b"]
    assert sync.resynced == ["a", "b"]


def test_apply_lump_sum_skips_untouched_debts():
    store = store_with_debts()
    sync = LoggingNotificationSync()
    _, updated = LumpSumApplier(store, sync).pay(80, strategy=PaymentStrategy.SNOWBALL)
    assert [d.id for d in updated] == ["a"]
    assert store.get_debt("a").current_balance == 20
    assert store.get_debt("b").current_balance == 200
    assert sync.resynced == ["a"]


def test_apply_lump_sum_to_selected_debts():
    store = store_with_debts()
    sync = LoggingNotificationSync()
    result, _ = LumpSumApplier(store, sync).pay(50, debt_ids=["b"])
    assert [r.debt_id for r in result.debt_results] == ["b"]
    assert store.get_debt("b").current_balance == 150
    assert store.get_debt("a").current_balance == 100


def test_apply_with_non_positive_amount_changes_nothing():
    store = store_with_debts()
    sync = LoggingNotificationSync()
    result, updated = LumpSumApplier(store, sync).pay(0)
    assert result.total_occurrences is None
    assert updated == []
    assert sync.resynced == []


def test_plan_result_cannot_be_applied():
    store = store_with_debts()
    applier = LumpSumApplier(store, LoggingNotificationSync())
    plan = DebtCalculator(store.list_debts()).calculate(50)
    with pytest.raises(InvalidSimulationError):
        applier.apply(plan)

