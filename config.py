"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "postgres")
DB_USER: str = os.getenv("DB_USER", "postgres")
DB_PASS: str = os.getenv("DB_PASS", "")

# Credentials are passed to the pool separately, never embedded in the URL.
DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"postgresql://{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ── Connection Pool ───────────────────────────────────────
# Fixed bounds, not configurable through the environment.
POOL_MAX_SIZE: int = 5
POOL_MIN_IDLE: int = 1

# ── Background Queries ────────────────────────────────────
ASYNC_MAX_WORKERS: int = int(os.getenv("ASYNC_MAX_WORKERS", str(POOL_MAX_SIZE)))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
