import logging
import time
from typing import List, Dict, Any, Optional, Tuple
from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from core.config import APP_TITLE, APP_VERSION, CORS_ORIGINS, LOG_LEVEL
from core.schemas import (
    CalculatorMode,
    Debt,
    PaymentFrequency,
    PaymentStrategy,
    SimulationResult,
)
from core.calculator import DebtCalculator, LumpSumApplier
from core.exceptions import SimulatorError
from core.plan_utils import schedule_to_dataframe, balance_series
from core.scenarios import compare_strategies
from core.store import InMemoryDebtStore, LoggingNotificationSync, DebtStore, NotificationSync
from core.utils import money, occurrence_label

for _name in ("debt_api", "debt_simulator", "debt_calculator", "debt_store"):
    _logger = logging.getLogger(_name)
    _logger.setLevel(LOG_LEVEL)
    if not _logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(LOG_LEVEL)
        console_handler.setFormatter(logging.Formatter(
            '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        ))
        _logger.addHandler(console_handler)

logger = logging.getLogger("debt_api")

# ======================================
# App + CORS
# ======================================
app = FastAPI(
    title=APP_TITLE,
    description="Multi-debt payoff simulator: avalanche, snowball and lump-sum payments",
    version=APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ======================================
# Models
# ======================================
class DebtValidationRequest(BaseModel):
    debts: List[Dict[str, Any]]

class PlanRequest(BaseModel):
    debts: List[Dict[str, Any]]
    payment: float
    interval: int = 1
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    strategy: PaymentStrategy = PaymentStrategy.AVALANCHE
    selected_ids: List[str] = []
    include_schedule: bool = False

class ImmediateRequest(BaseModel):
    debts: List[Dict[str, Any]]
    amount: float
    strategy: PaymentStrategy = PaymentStrategy.AVALANCHE
    selected_ids: List[str] = []

class ApplyLumpSumRequest(BaseModel):
    amount: float
    strategy: PaymentStrategy = PaymentStrategy.AVALANCHE
    debt_ids: List[str] = []


# ======================================
# Collaborators (overridable in tests)
# ======================================
_store = InMemoryDebtStore()
_notifications = LoggingNotificationSync()

def get_store() -> DebtStore:
    return _store

def get_notifications() -> NotificationSync:
    return _notifications


# ======================================
# Helpers
# ======================================
def parse_debts_json(debts_data: List[Dict[str, Any]]) -> Tuple[List[Debt], Optional[str]]:
    debts: List[Debt] = []
    for i, d in enumerate(debts_data):
        for k in ("id", "name", "current_balance"):
            if k not in d:
                return [], f"Debt {i+1} missing field: {k}"
        try:
            debts.append(Debt(**d))
        except ValidationError as e:
            return [], f"Debt {i+1} is invalid: {e.errors()[0].get('msg', e)}"
    ids = [d.id for d in debts]
    if len(set(ids)) != len(ids):
        return [], "Debt ids must be unique"
    return debts, None

def ensure_serializable_number(x: Any) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return 0.0

def schedule_to_frontend_records(result: SimulationResult) -> List[Dict[str, Any]]:
    df = schedule_to_dataframe(result)
    if df.empty:
        return []
    records = []
    for _, row in df.iterrows():
        records.append({
            "occurrence": int(row["occurrence"]),
            "date": row["date"].isoformat(),
            "debt_id": str(row["debt_id"]),
            "payment": ensure_serializable_number(row["payment"]),
            "remaining_balance": ensure_serializable_number(row["remaining_balance"]),
        })
    return records

def _selected_calculator(debts: List[Debt], selected_ids: List[str]) -> DebtCalculator:
    calc = DebtCalculator(debts)
    if selected_ids:
        calc.select(selected_ids)
    return calc

def result_to_response(result: SimulationResult, currency: str,
                       frequency: PaymentFrequency = PaymentFrequency.MONTHLY) -> Dict[str, Any]:
    payload = result.model_dump(mode="json", exclude={"schedule"})
    payload["insufficient_payment"] = result.is_insufficient_payment
    payload["paid_off"] = result.is_paid_off
    payload["currency"] = currency
    payload["formatted"] = {
        "occurrences": (
            "Immediate payment" if result.mode == CalculatorMode.IMMEDIATE
            else occurrence_label(result.total_occurrences, frequency)
        ),
        "total_interest": money(result.total_interest_paid, currency),
        "total_cost": money(result.total_paid_total, currency),
        "remaining_balance": money(result.remaining_balance, currency),
        "payoff_date": result.payoff_date.strftime("%B %Y") if result.payoff_date else None,
    }
    return payload


# ======================================
# Routes
# ======================================
@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "message": "Debt payoff simulator is running!", "timestamp": time.time()}

@app.post("/api/debts/validate")
async def validate_debts(request: DebtValidationRequest):
    debts, error = parse_debts_json(request.debts)
    if error:
        return {"valid": False, "error": error}

    calc = DebtCalculator(debts)
    total_balance = sum(d.current_balance for d in debts)
    weighted_apr = (sum((d.apr or 0.0) * d.current_balance for d in debts) / total_balance) if total_balance > 0 else 0.0
    return {
        "valid": True,
        "summary": {
            "debts_count": len(debts),
            "total_balance": total_balance,
            "weighted_apr": weighted_apr,
            "mixed_currencies": calc.has_mixed_currencies,
            "primary_currency": calc.primary_currency,
            "formatted": {
                "total_balance": money(total_balance, calc.primary_currency),
                "weighted_apr": f"{weighted_apr:.2f}%",
            },
        },
    }

@app.post("/api/simulations/plan")
async def simulate_plan_route(request: PlanRequest):
    debts, error = parse_debts_json(request.debts)
    if error:
        raise HTTPException(status_code=400, detail=error)
    if not debts:
        raise HTTPException(status_code=400, detail="No debts provided")
    if request.interval < 1:
        raise HTTPException(status_code=400, detail="Interval must be at least 1")

    try:
        calc = _selected_calculator(debts, request.selected_ids)
    except SimulatorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    result = calc.calculate(
        request.payment,
        interval=request.interval,
        mode=CalculatorMode.PLAN,
        frequency=request.frequency,
        strategy=request.strategy,
        record_schedule=request.include_schedule,
    )
    response = result_to_response(result, calc.primary_currency, request.frequency)
    if request.include_schedule:
        response["schedule"] = schedule_to_frontend_records(result)
        response["balance_series"] = [float(x) for x in balance_series(result)]
    return response

@app.post("/api/simulations/immediate")
async def simulate_immediate_route(request: ImmediateRequest):
    debts, error = parse_debts_json(request.debts)
    if error:
        raise HTTPException(status_code=400, detail=error)
    if not debts:
        raise HTTPException(status_code=400, detail="No debts provided")

    try:
        calc = _selected_calculator(debts, request.selected_ids)
    except SimulatorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    result = calc.calculate(request.amount, mode=CalculatorMode.IMMEDIATE, strategy=request.strategy)
    return result_to_response(result, calc.primary_currency)

@app.post("/api/simulations/compare")
async def compare_route(request: PlanRequest):
    debts, error = parse_debts_json(request.debts)
    if error:
        raise HTTPException(status_code=400, detail=error)
    if not debts:
        raise HTTPException(status_code=400, detail="No debts provided")
    if request.payment <= 0:
        raise HTTPException(status_code=400, detail="Payment must be positive")

    try:
        calc = _selected_calculator(debts, request.selected_ids)
    except SimulatorError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    params = calc.params(request.payment, request.interval, frequency=request.frequency, strategy=request.strategy)
    comparison = compare_strategies(calc.selected_debts, params)
    return {
        "best_plan": comparison["best_plan"],
        "payment_per_period": comparison["payment_per_period"],
        "plans": {
            name: result_to_response(r, calc.primary_currency, request.frequency)
            for name, r in comparison["plans"].items()
        },
    }

@app.get("/api/debts")
async def list_debts(store: DebtStore = Depends(get_store)):
    return {"debts": [d.model_dump(mode="json") for d in store.list_debts()]}

@app.post("/api/debts")
async def save_debts(request: DebtValidationRequest, store: DebtStore = Depends(get_store)):
    debts, error = parse_debts_json(request.debts)
    if error:
        raise HTTPException(status_code=400, detail=error)
    for d in debts:
        store.save_debt(d)
    logger.info("Saved %d debts", len(debts))
    return {"saved": len(debts)}

@app.post("/api/debts/apply-lump-sum")
async def apply_lump_sum(request: ApplyLumpSumRequest,
                         store: DebtStore = Depends(get_store),
                         notifications: NotificationSync = Depends(get_notifications)):
    if request.amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be positive")

    applier = LumpSumApplier(store, notifications)
    try:
        result, updated = applier.pay(request.amount, strategy=request.strategy, debt_ids=request.debt_ids)
    except SimulatorError as exc:
        logger.warning("Lump sum rejected: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    if not result.debt_results:
        raise HTTPException(status_code=400, detail="No debts to pay")
    currency = store.get_debt(result.debt_results[0].debt_id).currency
    response = result_to_response(result, currency)
    response["updated"] = [d.model_dump(mode="json") for d in updated]
    return response
