"""Tests for ledger rules (no database)."""

from decimal import Decimal

import pytest

from src.core.exceptions import ExcessiveReturnError, InsufficientStockError, ValidationError
from src.modules.assets.models import AssetStatus
from src.modules.ledger.rules import (
    Balances,
    apply_consumption,
    apply_outgoing,
    apply_receipt,
    apply_return,
    apply_write_off,
)

D = Decimal


def stocked(quantity: str = "10", unit_cost: str = "100") -> Balances:
    return apply_receipt(Balances(), D(quantity), D(unit_cost))


def assert_closing_identity(b: Balances) -> None:
    assert b.closing_quantity == b.inbound_quantity - b.outbound_quantity
    assert b.closing_value == (b.closing_quantity * b.cost_basis).quantize(D("0.01"))


class TestReceipt:
    def test_receipt_into_empty_asset(self):
        b = stocked("10", "100")

        assert b.stock_quantity == D("10")
        assert b.inbound_quantity == D("10")
        assert b.inbound_value == D("1000.00")
        assert b.cost_basis == D("100.00")
        assert b.closing_value == D("1000.00")
        assert_closing_identity(b)

    def test_receipt_weighted_average(self):
        b = apply_receipt(stocked("10", "100"), D("10"), D("200"))

        assert b.stock_quantity == D("20")
        assert b.cost_basis == D("150.00")
        assert b.closing_value == D("3000.00")
        assert_closing_identity(b)

    def test_receipt_adds_booked_value_exactly(self):
        before = Balances(
            stock_quantity=D("3"),
            inbound_quantity=D("20"),
            outbound_quantity=D("17"),
            closing_quantity=D("3"),
            closing_value=D("99.99"),
            cost_basis=D("33.33"),
        )

        b = apply_receipt(before, D("5"), D("100"))

        assert b.closing_quantity == D("8")
        assert b.closing_value - before.closing_value == D("500.00")
        assert b.cost_basis == D("75.00")
        assert b.inbound_value == D("500.00")

    def test_receipt_rejects_zero_quantity(self):
        with pytest.raises(ValidationError):
            apply_receipt(Balances(), D("0"), D("10"))

    def test_receipt_lifts_allocated_status(self):
        b = apply_outgoing(stocked("2"), D("2"), asset_ref="X", track_allocation=True)
        assert b.status == AssetStatus.ALLOCATED

        b = apply_receipt(b, D("1"), D("100"))
        assert b.status == AssetStatus.IN_STOCK


class TestOutgoing:
    def test_allocation_tracks_allocated_quantity(self):
        b = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=True)

        assert b.stock_quantity == D("6")
        assert b.allocated_quantity == D("4")
        assert b.outbound_quantity == D("4")
        assert b.outbound_value == D("400.00")
        assert b.status == AssetStatus.IN_STOCK
        assert_closing_identity(b)

    def test_issue_does_not_track_allocation(self):
        b = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=False)
        assert b.allocated_quantity == D("0")
        assert b.stock_quantity == D("6")

    def test_insufficient_stock(self):
        with pytest.raises(InsufficientStockError) as exc_info:
            apply_outgoing(stocked("5"), D("6"), asset_ref="CC-MK-0226", track_allocation=True)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.details["field"] == "quantity"

    def test_emptying_stock_sets_allocated(self):
        b = apply_outgoing(stocked("5"), D("5"), asset_ref="X", track_allocation=True)
        assert b.stock_quantity == D("0")
        assert b.status == AssetStatus.ALLOCATED


class TestReturn:
    def test_full_return_restores_balances(self):
        start = stocked()
        out = apply_outgoing(start, D("4"), asset_ref="X", track_allocation=True)
        back = apply_return(out, D("4"), outstanding=D("4"), track_allocation=True)

        assert back.stock_quantity == start.stock_quantity
        assert back.allocated_quantity == start.allocated_quantity
        assert back.outbound_quantity == D("0")
        assert back.status == AssetStatus.IN_STOCK
        assert_closing_identity(back)

    def test_return_beyond_outstanding(self):
        out = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=False)
        with pytest.raises(ExcessiveReturnError):
            apply_return(out, D("5"), outstanding=D("4"), track_allocation=False)

    def test_low_reusability_goes_to_maintenance(self):
        out = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=True)
        back = apply_return(
            out, D("4"), outstanding=D("4"), track_allocation=True, reusability_percentage=D("50")
        )
        assert back.status == AssetStatus.UNDER_MAINTENANCE

    def test_threshold_is_inclusive(self):
        out = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=True)
        back = apply_return(
            out, D("4"), outstanding=D("4"), track_allocation=True, reusability_percentage=D("70")
        )
        assert back.status == AssetStatus.IN_STOCK

    def test_release_quantity_differs_from_returned(self):
        """Full return of 10 with 3 consumed: 7 back on the shelf, all 10 released."""
        out = apply_outgoing(stocked(), D("10"), asset_ref="X", track_allocation=True)
        back = apply_return(
            out, D("7"), outstanding=D("10"), track_allocation=True, release_quantity=D("10")
        )

        assert back.stock_quantity == D("7")
        assert back.allocated_quantity == D("0")
        assert back.outbound_quantity == D("3")
        assert_closing_identity(back)

    def test_return_uses_current_cost_basis(self):
        """Value moved back is priced at today's cost basis, not the cost at issue time."""
        out = apply_outgoing(stocked("10", "100"), D("5"), asset_ref="X", track_allocation=False)
        assert out.outbound_value == D("500.00")

        # Receipt at a higher price moves the average to (500 + 5*300) / 10 = 200
        repriced = apply_receipt(out, D("5"), D("300"))
        assert repriced.cost_basis == D("200.00")

        back = apply_return(repriced, D("2"), outstanding=D("5"), track_allocation=False)
        assert back.outbound_value == D("100.00")  # 500 - 2 * 200


class TestConsumption:
    def test_consumption_only_releases_allocation(self):
        out = apply_outgoing(stocked(), D("4"), asset_ref="X", track_allocation=True)
        used = apply_consumption(out, D("4"))

        assert used.allocated_quantity == D("0")
        assert used.stock_quantity == out.stock_quantity
        assert used.outbound_quantity == out.outbound_quantity
        assert used.closing_value == out.closing_value


class TestWriteOff:
    def test_partial_write_off(self):
        b = apply_write_off(stocked("10", "100"), D("4"), D("100"), asset_ref="X")

        assert b.stock_quantity == D("6")
        assert b.closing_quantity == D("6")
        assert b.closing_value == D("600.00")
        assert_closing_identity(b)

    def test_write_off_more_than_stock(self):
        with pytest.raises(InsufficientStockError):
            apply_write_off(stocked("3"), D("4"), D("100"), asset_ref="X")
