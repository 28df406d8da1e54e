# core/simulation.py
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .config import DAYS_PER_YEAR, INSUFFICIENT_PAYMENT, MAX_SIMULATION_YEARS, PAYOFF_EPSILON
from .schemas import (
    CalculatorMode,
    Debt,
    DebtPayoffResult,
    PaymentFrequency,
    PaymentStrategy,
    SimulationParams,
    SimulationPeriod,
    SimulationResult,
    WorkingDebt,
)

logger = logging.getLogger("debt_simulator")


def occurrence_cap(frequency: PaymentFrequency) -> int:
    return MAX_SIMULATION_YEARS * DAYS_PER_YEAR // frequency.days


def period_interest(balance: float, apr: float, days: int) -> float:
    """Daily rate (APR/365) scaled by the period length, applied once per period."""
    return balance * (max(0.0, apr) / 100.0 / DAYS_PER_YEAR) * days


def sort_debts(debts: List[Debt], strategy: PaymentStrategy) -> List[Debt]:
    # sorted() is stable, so ties keep input order
    if strategy == PaymentStrategy.AVALANCHE:
        return sorted(debts, key=lambda d: -(d.apr or 0.0))
    if strategy == PaymentStrategy.SNOWBALL:
        return sorted(debts, key=lambda d: d.current_balance)
    # proportional is allocated sequentially in input order, not pro-rata
    return list(debts)


def sort_working_debts(working: List[WorkingDebt], strategy: PaymentStrategy) -> List[WorkingDebt]:
    active = [w for w in working if w.balance > 0]
    if strategy == PaymentStrategy.AVALANCHE:
        return sorted(active, key=lambda w: -w.apr)
    if strategy == PaymentStrategy.SNOWBALL:
        return sorted(active, key=lambda w: w.balance)
    return active


def _total_balance(debts: List[Debt]) -> float:
    return sum(d.current_balance for d in debts)


def _is_all_cleared(working: List[WorkingDebt]) -> bool:
    return all(w.balance <= PAYOFF_EPSILON for w in working)


def simulate_immediate(debts: List[Debt], lump_sum: float,
                       strategy: PaymentStrategy = PaymentStrategy.AVALANCHE,
                       now: Optional[datetime] = None) -> SimulationResult:
    """
    Apply a one-time payment across debts in static strategy order.

    No interest accrues: the payment is instantaneous. Debts the lump sum
    does not reach keep their balance and report total_paid = 0. Results
    are listed in allocation order.
    """
    remaining = lump_sum
    total_remaining = 0.0
    results: List[DebtPayoffResult] = []

    for d in sort_debts(debts, strategy):
        allocated = max(0.0, min(remaining, d.current_balance))
        new_balance = d.current_balance - allocated
        remaining -= allocated
        total_remaining += new_balance
        results.append(DebtPayoffResult(
            debt_id=d.id,
            debt_name=d.name,
            original_balance=d.current_balance,
            final_balance=new_balance,
            interest_paid=0.0,
            total_paid=allocated,
            payoff_occurrence=1 if new_balance <= 0 else None,
            color=d.color,
        ))

    logger.debug("Immediate payment of %.2f across %d debts, %.2f unallocated", lump_sum, len(debts), remaining)
    return SimulationResult(
        total_occurrences=1,
        mode=CalculatorMode.IMMEDIATE,
        total_interest_paid=0.0,
        total_paid_total=lump_sum - remaining,
        remaining_balance=total_remaining,
        total_starting_balance=_total_balance(debts),
        payoff_date=now or datetime.now(),
        debt_results=results,
        max_occurrences=1,
    )


def simulate_plan(debts: List[Debt], params: SimulationParams,
                  start: Optional[datetime] = None,
                  record_schedule: bool = False) -> SimulationResult:
    period_payment = params.period_payment
    days = params.frequency.days
    total_starting = _total_balance(debts)
    working: Dict[str, WorkingDebt] = {d.id: WorkingDebt.from_debt(d) for d in debts}
    ws = list(working.values())
    cap = occurrence_cap(params.frequency)

    # Fast-fail guard: only the first period's interest is checked
    min_interest = sum(period_interest(w.balance, w.apr, days) for w in ws)
    if period_payment <= min_interest and min_interest > 0:
        logger.info(
            "Payment %.2f per %s period does not cover interest %.2f",
            period_payment, params.frequency.value, min_interest,
        )
        return SimulationResult(
            total_occurrences=INSUFFICIENT_PAYMENT,
            mode=CalculatorMode.PLAN,
            total_interest_paid=0.0,
            total_paid_total=0.0,
            remaining_balance=total_starting,
            total_starting_balance=total_starting,
            payoff_date=None,
            debt_results=[],
            max_occurrences=cap,
        )

    current = start or datetime.now()
    occurrences = 0
    total_interest = 0.0
    schedule: List[SimulationPeriod] = []

    while occurrences < cap and not _is_all_cleared(ws):
        occurrences += 1
        current = current + timedelta(days=days)

        period_int = 0.0
        for w in ws:
            if w.balance > 0:
                interest = period_interest(w.balance, w.apr, days)
                w.balance += interest
                w.interest_accrued += interest
                period_int += interest
        total_interest += period_int

        remaining = period_payment
        payments: Dict[str, float] = {}
        for w in sort_working_debts(ws, params.strategy):
            if remaining <= 0:
                break
            pay = min(remaining, w.balance)
            w.balance -= pay
            w.total_paid += pay
            remaining -= pay
            payments[w.id] = pay
            if w.balance <= PAYOFF_EPSILON and w.payoff_occurrence is None:
                w.payoff_occurrence = occurrences
                w.balance = 0.0

        if record_schedule:
            schedule.append(SimulationPeriod(
                occurrence=occurrences,
                date=current,
                interest=period_int,
                paid=period_payment - remaining,
                remaining_balance=sum(w.balance for w in ws),
                payments=payments,
            ))

    reached_cap = occurrences >= cap and not _is_all_cleared(ws)
    if reached_cap:
        logger.info("Plan did not amortize within %d %s periods", cap, params.frequency.value)
    logger.debug(
        "Plan (%s, %s) finished after %d periods, interest %.2f",
        params.strategy.value, params.frequency.value, occurrences, total_interest,
    )

    results = [
        DebtPayoffResult(
            debt_id=w.id,
            debt_name=w.name,
            original_balance=w.original_balance,
            final_balance=w.balance,
            interest_paid=w.interest_accrued,
            total_paid=w.total_paid,
            payoff_occurrence=w.payoff_occurrence,
            color=w.color,
        )
        for w in ws
    ]
    return SimulationResult(
        total_occurrences=occurrences,
        mode=CalculatorMode.PLAN,
        total_interest_paid=total_interest,
        total_paid_total=total_starting + total_interest,
        remaining_balance=sum(w.balance for w in ws),
        total_starting_balance=total_starting,
        payoff_date=current,
        debt_results=results,
        max_occurrences=cap,
        reached_cap=reached_cap,
        schedule=schedule,
    )


def simulate(debts: List[Debt], params: SimulationParams,
             now: Optional[datetime] = None,
             record_schedule: bool = False) -> SimulationResult:
    """Entry point re-run by callers whenever any input changes."""
    if not debts:
        return SimulationResult()

    total_starting = _total_balance(debts)
    if params.payment_per_occurrence <= 0:
        return SimulationResult(
            total_occurrences=None,
            remaining_balance=total_starting,
            total_starting_balance=total_starting,
        )

    if params.mode == CalculatorMode.IMMEDIATE:
        return simulate_immediate(debts, params.payment_per_occurrence, params.strategy, now=now)
    return simulate_plan(debts, params, start=now, record_schedule=record_schedule)
