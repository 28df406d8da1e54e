"""Caller-side exceptions for the debt calculator."""


class SimulatorError(Exception):
    """Base calculator exception with HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CurrencyMismatchError(SimulatorError):
    """Raised when a debt in another currency is added to the selection."""

    def __init__(self, currency: str, selected_currency: str):
        super().__init__(f"Cannot mix {currency} with {selected_currency} debts", status_code=400)
        self.currency = currency
        self.selected_currency = selected_currency


class DebtNotFoundError(SimulatorError):
    def __init__(self, debt_id: str):
        super().__init__(f"Debt '{debt_id}' not found", status_code=404)
        self.debt_id = debt_id


class InvalidSimulationError(SimulatorError):
    pass
