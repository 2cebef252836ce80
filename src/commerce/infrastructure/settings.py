"""Runtime configuration read from the environment (and an optional .env)."""

import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/commerce.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

SHIPPING_COST = Decimal(os.getenv("SHIPPING_COST", "10.00"))
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.10"))

CHECKOUT_MAX_ATTEMPTS = int(os.getenv("CHECKOUT_MAX_ATTEMPTS", 3))
CHECKOUT_BACKOFF_SECONDS = float(os.getenv("CHECKOUT_BACKOFF_SECONDS", 0.05))

LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
