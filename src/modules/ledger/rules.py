"""Quantity/value ledger rules for assets.

Pure functions: each takes the asset's current balances and an event, and
returns the new balance set. Callers (services) load the asset row, apply one
rule, and write the result back inside the same transaction.

Invariant kept by every rule:
    closing_quantity == inbound_quantity - outbound_quantity

Outgoing and return rules re-derive closing_value as closing_quantity *
cost_basis. A receipt adds its booked value to closing_value unchanged and
derives cost_basis from the result.

Monetary deltas on outgoing/return use the asset's *current* cost_basis, not
the cost recorded when the stock went out.
"""

from dataclasses import asdict, dataclass, replace
from decimal import Decimal
from typing import Any

from src.core.config import settings
from src.core.exceptions import ExcessiveReturnError, InsufficientStockError, ValidationError
from src.modules.assets.models import Asset, AssetStatus
from src.shared.utils.money import ZERO, floor_zero, round_money, round_quantity, to_decimal


@dataclass(frozen=True)
class Balances:
    """Snapshot of an asset's ledger fields."""

    stock_quantity: Decimal = ZERO
    allocated_quantity: Decimal = ZERO
    inbound_quantity: Decimal = ZERO
    inbound_value: Decimal = ZERO
    outbound_quantity: Decimal = ZERO
    outbound_value: Decimal = ZERO
    closing_quantity: Decimal = ZERO
    closing_value: Decimal = ZERO
    cost_basis: Decimal = ZERO
    status: AssetStatus = AssetStatus.IN_STOCK

    @classmethod
    def from_asset(cls, asset: Asset) -> "Balances":
        return cls(
            stock_quantity=to_decimal(asset.stock_quantity),
            allocated_quantity=to_decimal(asset.allocated_quantity),
            inbound_quantity=to_decimal(asset.inbound_quantity),
            inbound_value=to_decimal(asset.inbound_value),
            outbound_quantity=to_decimal(asset.outbound_quantity),
            outbound_value=to_decimal(asset.outbound_value),
            closing_quantity=to_decimal(asset.closing_quantity),
            closing_value=to_decimal(asset.closing_value),
            cost_basis=to_decimal(asset.cost_basis),
            status=AssetStatus(asset.current_status),
        )

    def write_to(self, asset: Asset) -> None:
        asset.stock_quantity = self.stock_quantity
        asset.allocated_quantity = self.allocated_quantity
        asset.inbound_quantity = self.inbound_quantity
        asset.inbound_value = self.inbound_value
        asset.outbound_quantity = self.outbound_quantity
        asset.outbound_value = self.outbound_value
        asset.closing_quantity = self.closing_quantity
        asset.closing_value = self.closing_value
        asset.cost_basis = self.cost_basis
        asset.current_status = self.status.value

    def as_audit(self) -> dict[str, Any]:
        """JSON-safe dict for audit old/new values."""
        return {
            key: (value.value if isinstance(value, AssetStatus) else str(value))
            for key, value in asdict(self).items()
        }


def _positive(quantity: Decimal | int | str, field: str = "quantity") -> Decimal:
    qty = round_quantity(quantity)
    if qty <= 0:
        raise ValidationError("Quantity must be greater than 0", field=field)
    return qty


def _close(balances: Balances, **changes: Any) -> Balances:
    """Apply changes, then recompute closing quantity/value from inbound - outbound."""
    updated = replace(balances, **changes)
    closing_quantity = updated.inbound_quantity - updated.outbound_quantity
    return replace(
        updated,
        closing_quantity=closing_quantity,
        closing_value=round_money(closing_quantity * updated.cost_basis),
    )


def _settle_status(stock_quantity: Decimal, preferred: AssetStatus) -> AssetStatus:
    # Nothing left on the shelf: everything is out with someone.
    if stock_quantity <= 0:
        return AssetStatus.ALLOCATED
    return preferred


def apply_receipt(balances: Balances, quantity: Decimal | int | str, unit_cost: Decimal | int | str) -> Balances:
    """Goods received (GRN line) or stock re-entered (restore).

    The received value is added to closing_value as booked; cost basis is the
    resulting weighted average per unit.
    """
    qty = _positive(quantity)
    unit_cost = round_money(unit_cost)
    if unit_cost < 0:
        raise ValidationError("Unit cost must be >= 0", field="unit_cost")

    received_value = round_money(qty * unit_cost)
    inbound_quantity = balances.inbound_quantity + qty
    closing_quantity = inbound_quantity - balances.outbound_quantity
    stock_quantity = balances.stock_quantity + qty
    preferred = (
        AssetStatus.IN_STOCK
        if balances.status == AssetStatus.ALLOCATED
        else balances.status
    )
    changes = dict(
        stock_quantity=stock_quantity,
        inbound_quantity=inbound_quantity,
        inbound_value=balances.inbound_value + received_value,
        status=_settle_status(stock_quantity, preferred),
    )
    if closing_quantity <= 0:
        return _close(balances, cost_basis=unit_cost, **changes)

    closing_value = round_money(balances.closing_value + received_value)
    return replace(
        balances,
        closing_quantity=closing_quantity,
        closing_value=closing_value,
        cost_basis=round_money(closing_value / closing_quantity),
        **changes,
    )


def apply_outgoing(
    balances: Balances,
    quantity: Decimal | int | str,
    *,
    asset_ref: int | str,
    track_allocation: bool,
) -> Balances:
    """Stock leaves the shelf: allocation (track_allocation=True) or GIN issue."""
    qty = _positive(quantity)
    if qty > balances.stock_quantity:
        raise InsufficientStockError(asset_ref, qty, balances.stock_quantity)

    stock_quantity = balances.stock_quantity - qty
    allocated_quantity = balances.allocated_quantity
    if track_allocation:
        allocated_quantity += qty

    return _close(
        balances,
        stock_quantity=stock_quantity,
        allocated_quantity=allocated_quantity,
        outbound_quantity=balances.outbound_quantity + qty,
        outbound_value=round_money(balances.outbound_value + qty * balances.cost_basis),
        status=_settle_status(stock_quantity, AssetStatus.IN_STOCK),
    )


def apply_return(
    balances: Balances,
    quantity: Decimal | int | str,
    *,
    outstanding: Decimal | int | str,
    track_allocation: bool,
    reusability_percentage: Decimal | int | str = 100,
    release_quantity: Decimal | int | str | None = None,
) -> Balances:
    """Stock comes back from an allocation or a GIN line.

    release_quantity: how much allocated_quantity to release when it differs
    from the returned quantity (full return with part of it consumed).
    """
    qty = _positive(quantity, field="return_quantity")
    outstanding = to_decimal(outstanding)
    if qty > outstanding:
        raise ExcessiveReturnError(qty, outstanding)

    stock_quantity = balances.stock_quantity + qty
    allocated_quantity = balances.allocated_quantity
    if track_allocation:
        released = qty if release_quantity is None else round_quantity(release_quantity)
        allocated_quantity = floor_zero(allocated_quantity - released)

    preferred = (
        AssetStatus.IN_STOCK
        if to_decimal(reusability_percentage) >= settings.reusability_threshold
        else AssetStatus.UNDER_MAINTENANCE
    )
    return _close(
        balances,
        stock_quantity=stock_quantity,
        allocated_quantity=allocated_quantity,
        outbound_quantity=floor_zero(balances.outbound_quantity - qty),
        outbound_value=floor_zero(round_money(balances.outbound_value - qty * balances.cost_basis)),
        status=_settle_status(stock_quantity, preferred),
    )


def apply_consumption(balances: Balances, quantity: Decimal | int | str) -> Balances:
    """Allocated consumable used up.

    Outbound was booked at allocation time; consumption only releases the
    allocation, with no stock or value change.
    """
    qty = _positive(quantity)
    return replace(
        balances,
        allocated_quantity=floor_zero(balances.allocated_quantity - qty),
    )


def apply_write_off(
    balances: Balances,
    quantity: Decimal | int | str,
    unit_cost: Decimal | int | str,
    *,
    asset_ref: int | str,
) -> Balances:
    """Part of the on-hand stock moved into the deletion ledger."""
    qty = _positive(quantity)
    if qty > balances.stock_quantity:
        raise InsufficientStockError(asset_ref, qty, balances.stock_quantity)
    unit_cost = round_money(unit_cost)

    stock_quantity = balances.stock_quantity - qty
    return _close(
        balances,
        stock_quantity=stock_quantity,
        outbound_quantity=balances.outbound_quantity + qty,
        outbound_value=round_money(balances.outbound_value + qty * unit_cost),
        cost_basis=unit_cost,
        status=_settle_status(stock_quantity, balances.status),
    )
