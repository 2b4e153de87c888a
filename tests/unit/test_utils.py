"""Unit tests for statistics and formatting helpers"""

import pytest
from agency_analytics.utils.formatting import format_currency, format_fixed, format_percent, round_half_up
from agency_analytics.utils.statistics import calculate_median, group_by, mean, value_counts


def test_median_odd_and_even():
    """Test median averages the middle pair for even-length input"""
    assert calculate_median([3, 1, 2]) == 2
    assert calculate_median([4, 1, 3, 2]) == 2.5
    assert calculate_median([7]) == 7


def test_median_empty():
    """Test median of empty input is 0"""
    assert calculate_median([]) == 0


def test_mean():
    assert mean([1, 2, 3, 4]) == pytest.approx(2.5)
    assert mean([]) == 0


def test_value_counts_orders_by_count():
    """Test counts descending with ties in first-seen order and None skipped"""
    counts = value_counts(["Auto", "Home", "Auto", None, "Umbrella", "Home", "Auto"])

    assert list(counts.items()) == [("Auto", 3), ("Home", 2), ("Umbrella", 1)]


def test_value_counts_ties_keep_insertion_order():
    assert list(value_counts(["b", "a", "c"])) == ["b", "a", "c"]


def test_group_by_drops_none_keys():
    """Test items whose key is None are dropped"""
    rows = [{"name": "Ann"}, {"name": None}, {"name": "Bob"}, {"name": "Ann"}]

    groups = group_by(rows, lambda row: row["name"])

    assert set(groups) == {"Ann", "Bob"}
    assert len(groups["Ann"]) == 2


def test_format_currency():
    assert format_currency(1234.5) == "$1,235"
    assert format_currency(4500) == "$4,500"
    assert format_currency(-50) == "-$50"


def test_format_percent():
    assert format_percent(0.853) == "85.3%"
    assert format_percent(0.5, decimals=0) == "50%"
    assert format_percent(0.125, decimals=0) == "13%"


def test_round_half_up():
    """Test exact halves round up, including negatives"""
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.4) == 0


def test_format_fixed():
    assert format_fixed(12.5, 0) == "13"
    assert format_fixed(3.8) == "3.8"
    assert format_fixed(0.0) == "0.0"
