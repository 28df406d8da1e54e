# core/schemas.py
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict

from .config import DEFAULT_CURRENCY, INSUFFICIENT_PAYMENT, PAYOFF_EPSILON


class CalculatorMode(str, Enum):
    PLAN = "plan"
    IMMEDIATE = "immediate"


class PaymentFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "biWeekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> int:
        # monthly is approximated as 30 days, not calendar months
        return {"daily": 1, "weekly": 7, "biWeekly": 14, "monthly": 30}[self.value]

    @property
    def label(self) -> str:
        return {"daily": "Daily", "weekly": "Weekly", "biWeekly": "Bi-Weekly", "monthly": "Monthly"}[self.value]


class PaymentStrategy(str, Enum):
    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"
    PROPORTIONAL = "proportional"


class Debt(BaseModel):
    """
    Debt model accepts either:
     - apr (percent, e.g., 24 for 24%) or
     - interest_rate (same unit, the name the finance records use)
    A missing rate is treated as interest-free.
    """
    id: str
    name: str
    current_balance: float = Field(ge=0.0)
    apr: Optional[float] = Field(default=None, ge=0.0)
    interest_rate: Optional[float] = Field(default=None, ge=0.0)
    currency: str = DEFAULT_CURRENCY
    color: Optional[str] = None  # display only, passed through to results

    @model_validator(mode="after")
    def normalize_rate(self) -> "Debt":
        if self.apr is None:
            self.apr = float(self.interest_rate) if self.interest_rate is not None else 0.0
        self.interest_rate = self.apr
        return self


class SimulationParams(BaseModel):
    mode: CalculatorMode = CalculatorMode.PLAN
    strategy: PaymentStrategy = PaymentStrategy.AVALANCHE
    # non-positive payments are representable; they yield the no-op result
    payment_per_occurrence: float = 0.0
    occurrences_per_period: int = Field(default=1, ge=1)
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY

    @property
    def period_payment(self) -> float:
        return self.payment_per_occurrence * self.occurrences_per_period


class WorkingDebt(BaseModel):
    """Mutable per-run copy of a Debt. Never shared across runs."""
    id: str
    name: str
    balance: float
    apr: float
    original_balance: float
    color: Optional[str] = None
    interest_accrued: float = 0.0
    total_paid: float = 0.0
    payoff_occurrence: Optional[int] = None

    @classmethod
    def from_debt(cls, debt: Debt) -> "WorkingDebt":
        return cls(
            id=debt.id,
            name=debt.name,
            balance=debt.current_balance,
            apr=debt.apr or 0.0,
            original_balance=debt.current_balance,
            color=debt.color,
        )


class DebtPayoffResult(BaseModel):
    debt_id: str
    debt_name: str
    original_balance: float
    final_balance: float
    interest_paid: float
    total_paid: float
    payoff_occurrence: Optional[int] = None
    color: Optional[str] = None


class SimulationPeriod(BaseModel):
    occurrence: int
    date: datetime
    interest: float
    paid: float
    remaining_balance: float
    payments: Dict[str, float] = {}


class SimulationResult(BaseModel):
    # None: nothing computed; -1: payment never covers interest
    total_occurrences: Optional[int] = None
    mode: Optional[CalculatorMode] = None
    total_interest_paid: float = 0.0
    total_paid_total: float = 0.0
    remaining_balance: float = 0.0
    total_starting_balance: float = 0.0
    payoff_date: Optional[datetime] = None
    debt_results: List[DebtPayoffResult] = []
    max_occurrences: Optional[int] = None
    reached_cap: bool = False
    schedule: List[SimulationPeriod] = []

    @property
    def is_insufficient_payment(self) -> bool:
        return self.total_occurrences == INSUFFICIENT_PAYMENT

    @property
    def is_paid_off(self) -> bool:
        return (
            self.total_occurrences is not None
            and self.total_occurrences >= 0
            and not self.reached_cap
            and bool(self.debt_results)
            and all(r.final_balance <= PAYOFF_EPSILON for r in self.debt_results)
        )
