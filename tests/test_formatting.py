"""Tests for rate and duration formatting."""

from datetime import timedelta

import pytest

from neoprotect_notifier.integrations.formatting import (
    format_bps,
    format_duration,
    format_pps,
    percentage_change,
)


@pytest.mark.parametrize(
    "bps, expected",
    [
        (0, "0 bps"),
        (999, "999 bps"),
        (1_500, "1.50 Kbps"),
        (2_000_000, "2.00 Mbps"),
        (3_250_000_000, "3.25 Gbps"),
        (1_000_000_000_000, "1.00 Tbps"),
    ],
)
def test_format_bps(bps, expected):
    assert format_bps(bps) == expected


def test_format_pps():
    assert format_pps(12) == "12 pps"
    assert format_pps(12_000) == "12.00 Kpps"
    assert format_pps(4_500_000) == "4.50 Mpps"


def test_percentage_change():
    assert percentage_change(1000, 5000) == 400
    assert percentage_change(1000, 500) == -50
    assert percentage_change(0, 10) == 100


@pytest.mark.parametrize(
    "duration, expected",
    [
        (timedelta(seconds=42), "42 seconds"),
        (timedelta(minutes=10, seconds=5), "10 minutes, 5 seconds"),
        (timedelta(hours=2, minutes=30), "2 hours, 30 minutes"),
        (timedelta(days=1, hours=3), "1 days, 3 hours"),
        (timedelta(seconds=-5), "0 seconds"),
    ],
)
def test_format_duration(duration, expected):
    assert format_duration(duration) == expected
