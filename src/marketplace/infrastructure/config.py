"""Application settings, read from the environment (prefix ``MARKETPLACE_``)."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    """Runtime configuration for the marketplace core."""

    model_config = SettingsConfigDict(
        env_prefix="MARKETPLACE_",
        env_file=".env",
        extra="ignore",
    )

    environment: str = "development"
    log_level: str | None = None
    data_dir: Path = _DEFAULT_DATA_DIR

    # Platform cut of every sale, as a fraction of the line total.
    commission_rate: Decimal = Field(default=Decimal("0.05"), ge=0, le=1)

    # How many times to regenerate an order number that already exists.
    order_number_attempts: int = Field(default=10, ge=1)


def get_settings() -> Settings:
    return Settings()
