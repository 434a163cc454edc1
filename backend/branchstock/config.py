"""
Configuration settings for BranchStock
"""
import os
from decimal import Decimal
from pathlib import Path
from typing import List

import dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Resolve .env paths relative to this file so settings load regardless of cwd.
_CONFIG_DIR = Path(__file__).resolve().parent.parent  # backend/
_PROJECT_ROOT = _CONFIG_DIR.parent                    # repo root
_ENV_CANDIDATES = [
    _CONFIG_DIR / ".env",
    _PROJECT_ROOT / ".env",
]
_ENV_FILE = [str(p) for p in _ENV_CANDIDATES if p.is_file()]

# Load .env into os.environ so the os.getenv defaults below see it too.
for p in _ENV_CANDIDATES:
    if p.is_file():
        dotenv.load_dotenv(p, override=False)
        break

TRANSFER_COST_BASIS_SOURCE_FIFO = "source_fifo"
TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT = "approval_snapshot"


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "BranchStock"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_NAME: str = os.getenv("DB_NAME", "branchstock")

    @property
    def database_connection_string(self) -> str:
        """Build database connection string"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # CORS - parse from comma-separated string or use default
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list (deduplicated, order preserved)."""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return list(dict.fromkeys(origins))

    # Costing
    # average_unit_cost is rounded to this many places; total_cost is never rounded.
    UNIT_COST_DECIMAL_PLACES: int = int(os.getenv("UNIT_COST_DECIMAL_PLACES", "4"))
    MONEY_DECIMAL_PLACES: int = int(os.getenv("MONEY_DECIMAL_PLACES", "2"))
    # Consignment commission when the branch has no commission_rate of its own
    DEFAULT_COMMISSION_RATE: Decimal = Decimal(os.getenv("DEFAULT_COMMISSION_RATE", "0.15"))
    # How transfer-receive derives the cost of the lots it creates at the destination:
    #   source_fifo: re-walk the source branch's remaining lots oldest-first
    #   approval_snapshot: copy the lot/cost pairs consumed at approve time
    TRANSFER_COST_BASIS: str = os.getenv("TRANSFER_COST_BASIS", TRANSFER_COST_BASIS_SOURCE_FIFO)

    @field_validator("TRANSFER_COST_BASIS")
    @classmethod
    def _check_transfer_cost_basis(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in (TRANSFER_COST_BASIS_SOURCE_FIFO, TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT):
            raise ValueError(
                f"TRANSFER_COST_BASIS must be '{TRANSFER_COST_BASIS_SOURCE_FIFO}' "
                f"or '{TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT}', got {v!r}"
            )
        return v

    @field_validator("UNIT_COST_DECIMAL_PLACES", "MONEY_DECIMAL_PLACES")
    @classmethod
    def _check_places(cls, v: int) -> int:
        if v < 0 or v > 8:
            raise ValueError("decimal places must be between 0 and 8")
        return v

    class Config:
        env_file = _ENV_FILE if _ENV_FILE else [".env", "../.env"]
        case_sensitive = True
        extra = "ignore"


settings = Settings()
