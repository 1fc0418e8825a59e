"""Application configuration.

Environment variables override all defaults. A local `.env` next to the
backend package is loaded first and never overrides the real environment.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _csv_env(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./medai.db")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    # CORS (dashboard origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv_env(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    )

    # Groq API Key (Must be set via .env, never in code)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    GROQ_VISION_MODEL: str = os.getenv(
        "GROQ_VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct"
    )
    SCAN_MAX_TOKENS: int = int(os.getenv("SCAN_MAX_TOKENS", "2048"))
    SCAN_MAX_IMAGE_BYTES: int = int(os.getenv("SCAN_MAX_IMAGE_BYTES", str(4 * 1024 * 1024)))
    # unconfirmed scans are dropped after this long, oldest first once the cap is hit
    SCAN_STAGING_TTL_MINUTES: int = int(os.getenv("SCAN_STAGING_TTL_MINUTES", "120"))
    SCAN_STAGING_MAX: int = int(os.getenv("SCAN_STAGING_MAX", "20"))

    # Pharmacy identity (used in reminder messages)
    PHARMACY_NAME: str = os.getenv("PHARMACY_NAME", "MedAI Pharmacy")

    # Stock & expiry thresholds
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    EXPIRY_WARNING_MONTHS: int = int(os.getenv("EXPIRY_WARNING_MONTHS", "3"))
    DEFAULT_SHELF_LIFE_DAYS: int = int(os.getenv("DEFAULT_SHELF_LIFE_DAYS", "365"))

    # Direct counter sales are attributed to this patient
    WALK_IN_PATIENT_NAME: str = os.getenv("WALK_IN_PATIENT_NAME", "Walk-in Customer")
    WALK_IN_PATIENT_PHONE: str = os.getenv("WALK_IN_PATIENT_PHONE", "0000000000")


settings = Settings()
