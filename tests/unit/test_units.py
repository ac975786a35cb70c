"""Tests for currency unit conversion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from marketledger.core.units import (
    DECIMALS,
    format_amount,
    from_base_units,
    to_base_units,
)


class TestToBaseUnits:
    def test_whole_units(self):
        assert to_base_units(1) == 10**DECIMALS
        assert to_base_units("2") == 2 * 10**18

    def test_fractional(self):
        assert to_base_units("0.02") == 2 * 10**16
        assert to_base_units(Decimal("2.02")) == 202 * 10**16

    def test_smallest_unit(self):
        assert to_base_units("0.000000000000000001") == 1

    def test_finer_than_base_unit_rejected(self):
        with pytest.raises(ValueError):
            to_base_units("0.0000000000000000001")

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "Infinity", 1.5])
    def test_garbage_rejected(self, bad):
        with pytest.raises(ValueError):
            to_base_units(bad)

    def test_negative_passes_through(self):
        assert to_base_units("-1") == -(10**18)


class TestFromBaseUnits:
    def test_back_to_decimal(self):
        assert from_base_units(202 * 10**16) == Decimal("2.02")

    def test_format(self):
        assert format_amount(202 * 10**16) == "2.02"
        assert format_amount(2 * 10**18) == "2"
        assert format_amount(0) == "0"
