"""Application configuration loaded from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # SQLite DB URL
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'voucher_ledger.db'}"
    )

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Header carrying the user id resolved by the upstream auth layer
    AUTH_HEADER: str = os.getenv("AUTH_HEADER", "X-User-Id")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", str(BASE_DIR / "logs" / "app.log"))

    # CORS
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
    ]

    # How many times create_voucher retries after losing a voucher-number race
    VOUCHER_NO_MAX_RETRIES: int = int(os.getenv("VOUCHER_NO_MAX_RETRIES", "3"))
    # Upper bound in seconds of the random pause before each retry, scaled by attempt
    VOUCHER_NO_RETRY_BACKOFF: float = float(os.getenv("VOUCHER_NO_RETRY_BACKOFF", "0.05"))

    # Seconds a SQLite connection waits for the write lock before giving up
    SQLITE_BUSY_TIMEOUT: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

    # Create the default global chart of accounts on startup
    SEED_DEFAULT_CHART: bool = os.getenv("SEED_DEFAULT_CHART", "false").lower() == "true"


settings = Settings()
