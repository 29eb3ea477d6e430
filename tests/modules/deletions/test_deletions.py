"""Tests for Deletions module (deletion ledger and restore)."""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import Actor
from src.core.exceptions import NotFoundError, ValidationError
from src.modules.allocations.models import Allocation
from src.modules.allocations.schemas import AllocationCreate, AllocationReturnRequest
from src.modules.allocations.service import AllocationService
from src.modules.assets.models import AssetType
from src.modules.assets.schemas import AssetDeleteRequest
from src.modules.assets.service import AssetService
from src.modules.deletions.service import DeletionService
from src.modules.goods_issue.schemas import GINCreate, GINItemCreate
from src.modules.goods_issue.service import GoodsIssueService


class TestDeletionService:
    """Tests for DeletionService."""

    async def test_full_delete_removes_asset(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D1", quantity=4, unit_cost=250, brand="Bosch", unit="cái")
        asset_pk = asset.id

        record, remaining = await DeletionService(db_session).delete_asset(
            asset_pk, AssetDeleteRequest(reason="Hỏng không sửa được"), actor
        )

        assert remaining is None
        assert record.asset_id == "CC-D1"
        assert record.stock_quantity == Decimal("4")
        assert record.unit_cost == Decimal("250.00")
        assert record.cost_basis == Decimal("1000.00")
        assert record.deleted_by_name == "Nguyễn Văn An"
        assert record.original_data["brand"] == "Bosch"
        assert record.restoration_history == []

        with pytest.raises(NotFoundError):
            await AssetService(db_session).get_asset(asset_pk)

    async def test_partial_delete_writes_off_stock(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D2", quantity=10, unit_cost=100)

        record, remaining = await DeletionService(db_session).delete_asset(
            asset.id, AssetDeleteRequest(reason="Mất", quantity=Decimal("4")), actor
        )

        assert record.stock_quantity == Decimal("4")
        assert remaining.stock_quantity == Decimal("6")
        assert remaining.closing_quantity == Decimal("6")
        assert remaining.closing_value == Decimal("600.00")
        assert remaining.closing_quantity == remaining.inbound_quantity - remaining.outbound_quantity

    async def test_delete_more_than_stock(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D3", quantity=2)
        with pytest.raises(ValidationError):
            await DeletionService(db_session).delete_asset(
                asset.id, AssetDeleteRequest(reason="x", quantity=Decimal("3")), actor
            )

    async def test_blank_reason_rejected(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D4", quantity=2)
        with pytest.raises(ValidationError):
            await DeletionService(db_session).delete_asset(asset.id, AssetDeleteRequest(reason="   "), actor)

    async def test_blocked_by_open_allocation(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D5", quantity=5)
        await AllocationService(db_session).allocate(
            AllocationCreate(asset_ref=asset.id, allocated_to_name="Tổ 1", purpose="x"), actor
        )

        with pytest.raises(ValidationError):
            await DeletionService(db_session).delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)

    async def test_blocked_by_unreturned_gin_item(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("VT-D6", quantity=5, asset_type=AssetType.MATERIALS)
        await GoodsIssueService(db_session).create_gin(
            GINCreate(items=[GINItemCreate(asset_ref=asset.id, quantity=Decimal("1"))]), actor
        )

        with pytest.raises(ValidationError):
            await DeletionService(db_session).delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)

    async def test_full_delete_keeps_history_rows(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D7", quantity=5)
        allocations = AllocationService(db_session)
        allocation = await allocations.allocate(
            AllocationCreate(asset_ref=asset.id, allocated_to_name="Tổ 1", purpose="x"), actor
        )
        await allocations.return_allocation(allocation.id, AllocationReturnRequest(), actor)

        await DeletionService(db_session).delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)

        kept = await db_session.get(Allocation, allocation.id, populate_existing=True)
        assert kept is not None
        assert kept.asset_ref is None

    async def test_full_restore_recreates_asset(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D8", quantity=4, unit_cost=250, brand="Bosch")
        service = DeletionService(db_session)
        record, _ = await service.delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)
        record_id = record.id

        restored, record = await service.restore(record_id, Decimal("4"), actor)

        assert record is None
        assert restored.asset_id == "CC-D8"
        assert restored.brand == "Bosch"
        assert restored.stock_quantity == Decimal("4")
        assert restored.closing_quantity == Decimal("4")
        assert restored.cost_basis == Decimal("250.00")
        with pytest.raises(NotFoundError):
            await service.get_record(record_id)

    async def test_partial_restore_appends_one_history_entry(
        self, db_session: AsyncSession, actor: Actor, make_asset
    ):
        asset = await make_asset("CC-D9", quantity=10, unit_cost=100)
        service = DeletionService(db_session)
        record, _ = await service.delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)

        restored, record = await service.restore(record.id, Decimal("3"), actor)

        assert restored.stock_quantity == Decimal("3")
        assert record.stock_quantity == Decimal("7")
        assert record.cost_basis == Decimal("700.00")
        assert len(record.restoration_history) == 1
        entry = record.restoration_history[0]
        assert Decimal(entry["restored_quantity"]) == Decimal("3")
        assert Decimal(entry["restored_value"]) == Decimal("300.00")
        assert entry["restored_by_name"] == "Nguyễn Văn An"

    async def test_restore_more_than_deleted(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-D10", quantity=2)
        service = DeletionService(db_session)
        record, _ = await service.delete_asset(asset.id, AssetDeleteRequest(reason="x"), actor)

        with pytest.raises(ValidationError):
            await service.restore(record.id, Decimal("3"), actor)

    async def test_restore_into_existing_asset(self, db_session: AsyncSession, actor: Actor, make_asset):
        """Restore 5 at unit cost 100 into an asset holding 3: stock 8, closing value +500."""
        asset = await make_asset("VT-E2E", quantity=28, unit_cost=100, asset_type=AssetType.MATERIALS)
        allocations = AllocationService(db_session)
        allocation = await allocations.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("20"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )
        await allocations.mark_consumed(allocation.id, actor)

        service = DeletionService(db_session)
        record, asset = await service.delete_asset(
            asset.id, AssetDeleteRequest(reason="Hư hỏng", quantity=Decimal("5")), actor
        )
        assert asset.stock_quantity == Decimal("3")
        assert asset.closing_quantity == Decimal("3")
        assert record.unit_cost == Decimal("100.00")
        closing_value_before = asset.closing_value

        restored, record = await service.restore(record.id, Decimal("5"), actor)

        assert record is None
        assert restored.id == asset.id
        assert restored.stock_quantity == Decimal("8")
        assert restored.closing_quantity == Decimal("8")
        assert restored.closing_value == closing_value_before + Decimal("500")
        assert restored.closing_quantity == restored.inbound_quantity - restored.outbound_quantity

    async def test_restore_at_record_cost_into_revalued_asset(
        self, db_session: AsyncSession, actor: Actor, make_asset
    ):
        asset = await make_asset("CC-RV", quantity=10, unit_cost=100)
        service = DeletionService(db_session)
        record, _ = await service.delete_asset(
            asset.id, AssetDeleteRequest(reason="Mất", quantity=Decimal("4")), actor
        )

        assets = AssetService(db_session)
        locked = await assets.get_asset(asset.id, for_update=True)
        await assets.receive(locked, Decimal("3"), Decimal("33.33"), actor)
        await db_session.commit()
        await db_session.refresh(locked)
        assert locked.closing_value == Decimal("699.99")
        assert locked.cost_basis != record.unit_cost

        restored, _ = await service.restore(record.id, Decimal("4"), actor)

        assert restored.closing_quantity == Decimal("13")
        assert restored.closing_value - Decimal("699.99") == Decimal("400.00")
        assert restored.stock_quantity == Decimal("13")


class TestDeletionAPI:
    """API tests for deletion and restore endpoints."""

    async def test_delete_list_restore(self, client: AsyncClient, make_asset):
        asset = await make_asset("CC-DAPI", quantity=6, unit_cost=100)

        response = await client.post(
            f"/api/v1/assets/{asset.id}/delete", json={"reason": "Thanh lý", "quantity": "2"}
        )
        assert response.status_code == 200
        body = response.json()["data"]
        assert Decimal(body["asset"]["stock_quantity"]) == Decimal("4")
        record_id = body["record"]["id"]
        assert body["record"]["deleted_by_name"] == "Nguyễn Văn An"
        assert body["record"]["deleted_by_id"] == 7

        response = await client.get("/api/v1/asset-deletions", params={"search": "CC-DAPI"})
        assert response.json()["data"]["total"] == 1

        response = await client.post(f"/api/v1/asset-deletions/{record_id}/restore", json={"quantity": "1"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["asset"]["stock_quantity"]) == Decimal("5")
        assert len(data["record"]["restoration_history"]) == 1
        assert data["record"]["restoration_history"][0]["restored_by_name"] == "Nguyễn Văn An"

        response = await client.post(f"/api/v1/asset-deletions/{record_id}/restore", json={"quantity": "1"})
        assert response.json()["data"]["record"] is None
        assert (await client.get(f"/api/v1/asset-deletions/{record_id}")).status_code == 404

    async def test_missing_reason(self, client: AsyncClient, make_asset):
        asset = await make_asset("CC-DAPI2", quantity=1)
        response = await client.post(f"/api/v1/assets/{asset.id}/delete", json={})
        assert response.status_code == 422
