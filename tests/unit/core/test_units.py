# tests/unit/core/test_units.py — v2
"""Tests for core/units.py."""

from __future__ import annotations

import pytest

from tiercache.core.units import format_size


class TestFormatSize:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            (0, ""),
            (1, "1 byte"),
            (999, "999 bytes"),
            (1000, "1kB"),
            (1536000, "1.54MB"),
            (2_000_000_000, "2GB"),
        ],
    )
    def test_decimal(self, value, expected):
        assert format_size(value) == expected
