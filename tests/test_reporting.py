from datetime import datetime

import pytest

from core.plan_utils import balance_series, results_to_dataframe, schedule_to_dataframe, RESULT_COLUMNS
from core.scenarios import compare_strategies
from core.schemas import Debt, PaymentFrequency, SimulationParams, SimulationResult
from core.simulation import simulate_plan
from core.utils import money, occurrence_label

START = datetime(2026, 1, 1)


def sample_debts():
    return [
        Debt(id="a", name="Store Card", current_balance=300, apr=5, color="#ff0000"),
        Debt(id="b", name="Credit Card", current_balance=1000, apr=25, color="#00ff00"),
    ]


def test_results_dataframe_has_one_row_per_debt():
    res = simulate_plan(sample_debts(), SimulationParams(payment_per_occurrence=200), start=START)
    df = results_to_dataframe(res)
    assert list(df.columns) == RESULT_COLUMNS
    assert list(df["debt_id"]) == ["a", "b"]
    assert list(df["color"]) == ["#ff0000", "#00ff00"]
    assert df["interest_paid"].sum() == pytest.approx(res.total_interest_paid)


def test_empty_result_frames_keep_columns():
    empty = SimulationResult()
    assert results_to_dataframe(empty).empty
    assert list(results_to_dataframe(empty).columns) == RESULT_COLUMNS
    assert schedule_to_dataframe(empty).empty
    assert balance_series(empty) == [0.0]


def test_schedule_dataframe_and_balance_series():
    res = simulate_plan(sample_debts(), SimulationParams(payment_per_occurrence=200), start=START,
                        record_schedule=True)
    df = schedule_to_dataframe(res)
    assert df["occurrence"].max() == res.total_occurrences
    assert df["payment"].sum() == pytest.approx(sum(r.total_paid for r in res.debt_results))
    series = balance_series(res)
    assert series[0] == 1300
    assert series[-1] == 0
    assert len(series) == res.total_occurrences + 1


def test_compare_strategies_prefers_least_interest():
    params = SimulationParams(payment_per_occurrence=200)
    out = compare_strategies(sample_debts(), params, start=START)
    assert set(out["plans"]) == {"avalanche", "snowball", "proportional"}
    assert out["best_plan"] == "avalanche"
    assert out["payment_per_period"] == 200


def test_compare_strategies_without_viable_plan():
    params = SimulationParams(payment_per_occurrence=5, frequency=PaymentFrequency.MONTHLY)
    out = compare_strategies(sample_debts(), params, start=START)
    assert out["best_plan"] is None
    assert all(r.total_occurrences == -1 for r in out["plans"].values())


def test_money_formatting():
    assert money(1234.5, "USD") == "$1,234.50"
    assert money(99, "eur", decimals=0) == "€99"
    assert money(10, "XYZ") == "XYZ 10.00"


def test_occurrence_label():
    assert occurrence_label(12, PaymentFrequency.MONTHLY) == "12 monthly payments"
    assert occurrence_label(3, PaymentFrequency.BI_WEEKLY) == "3 biWeekly payments"
    assert occurrence_label(-1, PaymentFrequency.WEEKLY) == "Payment too low"
    assert occurrence_label(None, PaymentFrequency.DAILY) == "-"
