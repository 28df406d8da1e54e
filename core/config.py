# core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

APP_TITLE = os.getenv("APP_TITLE", "Debt Payoff Simulator")
APP_VERSION = "1.0.0"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

# Simulation constants
PAYOFF_EPSILON = 0.01
MAX_SIMULATION_YEARS = 50
DAYS_PER_YEAR = 365
INSUFFICIENT_PAYMENT = -1

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
    "ETB": "Br",
}
