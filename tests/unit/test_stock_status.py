"""
Unit Tests - Stock Classification
"""
from datetime import datetime

import pytest

from retail_admin.database.models import (
    Inventory,
    StockStatus,
    classify_stock,
    is_low_stock,
    needs_reorder,
)
from retail_admin.services.inventory import append_note, format_timestamp


class TestClassifyStock:
    """Tests for classify_stock"""

    @pytest.mark.parametrize(
        "current, minimum, maximum, expected",
        [
            (0, 10, None, StockStatus.OUT_OF_STOCK),
            (0, 0, None, StockStatus.OUT_OF_STOCK),
            (0, 10, 0, StockStatus.OUT_OF_STOCK),
            (1, 10, None, StockStatus.LOW_STOCK),
            (10, 10, None, StockStatus.LOW_STOCK),
            (11, 10, None, StockStatus.NORMAL),
            (49, 10, 50, StockStatus.NORMAL),
            (50, 10, 50, StockStatus.OVERSTOCK),
            (80, 10, 50, StockStatus.OVERSTOCK),
        ],
    )
    def test_classification(self, current, minimum, maximum, expected):
        """Test each bucket at and around its boundaries"""
        assert classify_stock(current, minimum, maximum) == expected

    def test_low_stock_wins_over_overstock(self):
        """Test a maximum below the minimum never reports overstock for low counts"""
        assert classify_stock(5, 10, 3) == StockStatus.LOW_STOCK

    def test_exactly_one_status_for_every_level(self):
        """Test the classification is total over a grid of levels"""
        for current in range(0, 30):
            for minimum in range(0, 15, 3):
                for maximum in (None, 0, 5, 20):
                    assert classify_stock(current, minimum, maximum) in StockStatus


class TestStockFlags:
    """Tests for low-stock and reorder predicates"""

    def test_flags_are_independent_of_status(self):
        """Test a NORMAL row can still need reorder"""
        inventory = Inventory(current_stock=15, minimum_stock=10, reorder_point=20)

        assert inventory.stock_status == StockStatus.NORMAL
        assert inventory.is_low_stock is False
        assert inventory.needs_reorder is True

    def test_boundaries_are_inclusive(self):
        assert is_low_stock(10, 10) is True
        assert is_low_stock(11, 10) is False
        assert needs_reorder(20, 20) is True
        assert needs_reorder(21, 20) is False


class TestAuditNotes:
    """Tests for audit note helpers"""

    def test_format_timestamp_has_milliseconds_and_z(self):
        moment = datetime(2024, 3, 15, 9, 5, 7, 123456)
        assert format_timestamp(moment) == "2024-03-15T09:05:07.123Z"

    def test_format_timestamp_pads_milliseconds(self):
        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"

    def test_append_note_to_empty(self):
        assert append_note(None, "first") == "first"
        assert append_note("", "first") == "first"

    def test_append_note_keeps_order(self):
        notes = append_note(append_note(None, "first"), "second")
        assert notes.split("\n") == ["first", "second"]
