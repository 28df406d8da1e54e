# core/scenarios.py
from typing import List, Dict, Any, Optional
from datetime import datetime
from .schemas import Debt, PaymentStrategy, SimulationParams, CalculatorMode
from .simulation import simulate_plan


def compare_strategies(debts: List[Debt], params: SimulationParams,
                       start: Optional[datetime] = None) -> Dict[str, Any]:
    start = start or datetime.now()
    plans = {}
    for strategy in PaymentStrategy:
        p = params.model_copy(update={"strategy": strategy, "mode": CalculatorMode.PLAN})
        plans[strategy.value] = simulate_plan(debts, p, start=start)
    # only plans that actually amortize are candidates
    candidates = [
        (name, r) for name, r in plans.items()
        if r.total_occurrences is not None and r.total_occurrences >= 0 and not r.reached_cap
    ]
    best = None
    if candidates:
        best = min(candidates, key=lambda c: (c[1].total_interest_paid, c[1].total_occurrences))[0]
    return {
        "payment_per_period": params.period_payment,
        "plans": plans,
        "best_plan": best,
    }
