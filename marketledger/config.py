"""Runtime configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from .env file and MARKETLEDGER_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProdConfig(BaseSettings):
    """Runtime configuration with environment variable overrides.

    All settings can be overridden via MARKETLEDGER_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export MARKETLEDGER_LOG_LEVEL=DEBUG
        export MARKETLEDGER_LEDGER_PATH=/data/market.db
        export MARKETLEDGER_FEE_PERCENT=2
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MARKETLEDGER_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    ledger_path: Path = Path(".marketledger/ledger.db")

    # Fee configuration applied when a new ledger is created
    fee_account: str = "marketplace-owner"
    fee_percent: int = Field(default=1, ge=0)

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton — import as `from marketledger.config import config`
config = ProdConfig()
