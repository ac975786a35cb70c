"""Tests for runtime config — env-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from marketledger.config import ProdConfig


class TestProdConfig:
    def test_defaults(self):
        config = ProdConfig()
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.fee_percent == 1
        assert config.fee_account == "marketplace-owner"

    def test_default_ledger_path(self):
        config = ProdConfig()
        assert config.ledger_path == Path(".marketledger/ledger.db")

    def test_is_production_false_by_default(self):
        config = ProdConfig()
        assert config.is_production is False

    def test_is_production_when_set(self):
        config = ProdConfig(environment="production")
        assert config.is_production is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MARKETLEDGER_FEE_PERCENT", "3")
        monkeypatch.setenv("MARKETLEDGER_LEDGER_PATH", "/data/market.db")
        config = ProdConfig()
        assert config.fee_percent == 3
        assert config.ledger_path == Path("/data/market.db")

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            ProdConfig(fee_percent=-1)
