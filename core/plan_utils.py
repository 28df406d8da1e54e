# core/plan_utils.py
from typing import List
import pandas as pd
from .schemas import SimulationResult

RESULT_COLUMNS = ["debt_id", "debt", "original_balance", "final_balance", "interest_paid", "total_paid", "payoff_occurrence", "color"]
SCHEDULE_COLUMNS = ["occurrence", "date", "debt_id", "payment", "period_interest", "period_paid", "remaining_balance"]


def results_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    rows = []
    for r in result.debt_results:
        rows.append({
            "debt_id": r.debt_id,
            "debt": r.debt_name,
            "original_balance": r.original_balance,
            "final_balance": r.final_balance,
            "interest_paid": r.interest_paid,
            "total_paid": r.total_paid,
            "payoff_occurrence": r.payoff_occurrence,
            "color": r.color,
        })
    if not rows:
        return pd.DataFrame(columns=RESULT_COLUMNS)
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def schedule_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    """One row per debt paid in each recorded period."""
    rows = []
    for p in result.schedule:
        for debt_id, payment in p.payments.items():
            rows.append({
                "occurrence": p.occurrence,
                "date": p.date,
                "debt_id": debt_id,
                "payment": payment,
                "period_interest": p.interest,
                "period_paid": p.paid,
                "remaining_balance": p.remaining_balance,
            })
    if not rows:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)
    return pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)


def balance_series(result: SimulationResult) -> List[float]:
    series = [result.total_starting_balance]
    series.extend(p.remaining_balance for p in result.schedule)
    return series
