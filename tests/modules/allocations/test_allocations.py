"""Tests for Allocations module."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import Actor
from src.core.exceptions import (
    ExcessiveReturnError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from src.modules.allocations.models import Allocation, AllocationStatus, ReturnCondition
from src.modules.allocations.schemas import AllocationCreate, AllocationReturnRequest
from src.modules.allocations.service import AllocationService
from src.modules.assets.models import AssetStatus, AssetType
from src.modules.assets.schemas import AssetDeleteRequest
from src.modules.assets.service import AssetService
from src.modules.deletions.service import DeletionService
from src.modules.employees.schemas import EmployeeCreate
from src.modules.employees.service import EmployeeService


async def _allocation_count(db_session: AsyncSession) -> int:
    return (await db_session.execute(select(func.count(Allocation.id)))).scalar_one()


class TestAllocationService:
    """Tests for AllocationService."""

    async def test_allocate_to_employee(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A1", quantity=10)
        employee = await EmployeeService(db_session).create_employee(
            EmployeeCreate(employee_code="NV001", full_name="Trần Thị Bình")
        )

        allocation = await AllocationService(db_session).allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("4"), allocated_to=employee.id, purpose="Công trình A"),
            actor,
        )

        assert allocation.status == AllocationStatus.ACTIVE.value
        assert allocation.allocated_to_name == "Trần Thị Bình"
        assert allocation.allocated_by_name == "Nguyễn Văn An"
        assert allocation.remaining_quantity == Decimal("4")
        assert allocation.consumed_quantity == Decimal("0")

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.stock_quantity == Decimal("6")
        assert asset.allocated_quantity == Decimal("4")
        assert asset.outbound_quantity == Decimal("4")
        assert asset.closing_quantity == asset.inbound_quantity - asset.outbound_quantity

    async def test_allocate_requires_recipient(self):
        with pytest.raises(ValueError):
            AllocationCreate(asset_ref=1, quantity=Decimal("1"), purpose="x")

    async def test_allocate_inactive_employee(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A2", quantity=2)
        employee = await EmployeeService(db_session).create_employee(
            EmployeeCreate(employee_code="NV009", full_name="Nghỉ việc")
        )
        employee.is_active = False
        await db_session.commit()

        with pytest.raises(ValidationError):
            await AllocationService(db_session).allocate(
                AllocationCreate(asset_ref=asset.id, allocated_to=employee.id, purpose="x"), actor
            )

    async def test_insufficient_stock_writes_nothing(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A3", quantity=5)
        asset_pk = asset.id

        with pytest.raises(InsufficientStockError) as exc_info:
            await AllocationService(db_session).allocate(
                AllocationCreate(asset_ref=asset_pk, quantity=Decimal("6"), allocated_to_name="Tổ 1", purpose="x"),
                actor,
            )

        assert isinstance(exc_info.value, ValidationError)
        await db_session.rollback()
        asset = await AssetService(db_session).get_asset(asset_pk)
        assert asset.stock_quantity == Decimal("5")
        assert asset.allocated_quantity == Decimal("0")
        assert await _allocation_count(db_session) == 0

    async def test_full_return_restores_stock(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A4", quantity=10)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("3"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        returned, remaining = await service.return_allocation(
            allocation.id, AllocationReturnRequest(return_condition=ReturnCondition.GOOD), actor
        )

        assert remaining is None
        assert returned.status == AllocationStatus.RETURNED.value
        assert returned.actual_return_date is not None
        assert returned.remaining_quantity == Decimal("3")
        assert returned.is_consumed is False

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.stock_quantity == Decimal("10")
        assert asset.allocated_quantity == Decimal("0")
        assert asset.outbound_quantity == Decimal("0")
        assert asset.current_status == AssetStatus.IN_STOCK.value

    async def test_return_below_threshold_goes_to_maintenance(
        self, db_session: AsyncSession, actor: Actor, make_asset
    ):
        asset = await make_asset("CC-A5", quantity=1)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, allocated_to_name="Tổ 1", purpose="x"), actor
        )

        await service.return_allocation(
            allocation.id,
            AllocationReturnRequest(
                reusability_percentage=Decimal("40"), return_condition=ReturnCondition.NEEDS_REPAIR
            ),
            actor,
        )

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.current_status == AssetStatus.UNDER_MAINTENANCE.value

    async def test_partial_return_splits_allocation(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A6", quantity=10)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("10"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        returned, remaining = await service.return_allocation(
            allocation.id, AllocationReturnRequest(return_quantity=Decimal("4")), actor
        )

        assert remaining.id == allocation.id
        assert remaining.quantity == Decimal("6")
        assert remaining.remaining_quantity == Decimal("6")
        assert remaining.status == AllocationStatus.ACTIVE.value
        assert returned.id != allocation.id
        assert returned.quantity == Decimal("4")
        assert returned.status == AllocationStatus.RETURNED.value
        assert returned.allocated_to_name == "Tổ 1"
        assert remaining.quantity + returned.quantity == Decimal("10")

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.stock_quantity == Decimal("4")
        assert asset.allocated_quantity == Decimal("6")

    async def test_return_more_than_outstanding(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A7", quantity=10)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("2"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        with pytest.raises(ExcessiveReturnError):
            await service.return_allocation(
                allocation.id, AllocationReturnRequest(return_quantity=Decimal("3")), actor
            )

    async def test_double_return_rejected(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A8", quantity=10)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("5"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )
        await service.return_allocation(allocation.id, AllocationReturnRequest(), actor)

        with pytest.raises(ValidationError):
            await service.return_allocation(allocation.id, AllocationReturnRequest(), actor)

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.outbound_quantity == Decimal("0")
        assert asset.stock_quantity == Decimal("10")

    async def test_return_after_asset_deleted_reports_already_returned(
        self, db_session: AsyncSession, actor: Actor, make_asset
    ):
        asset = await make_asset("CC-A8D", quantity=2)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, allocated_to_name="Tổ 1", purpose="x"), actor
        )
        await service.return_allocation(allocation.id, AllocationReturnRequest(), actor)
        await DeletionService(db_session).delete_asset(asset.id, AssetDeleteRequest(reason="Thanh lý"), actor)

        with pytest.raises(ValidationError) as exc_info:
            await service.return_allocation(allocation.id, AllocationReturnRequest(), actor)
        assert exc_info.value.details["field"] == "status"

        with pytest.raises(ValidationError):
            await service.mark_consumed(allocation.id, actor)

    async def test_full_return_with_consumed_part(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("VT-C1", quantity=10, asset_type=AssetType.MATERIALS)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("10"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        returned, _ = await service.return_allocation(
            allocation.id, AllocationReturnRequest(consumed_quantity=Decimal("3")), actor
        )

        assert returned.is_consumed is True
        assert returned.consumed_quantity == Decimal("3")
        assert returned.remaining_quantity == Decimal("7")
        assert returned.remaining_quantity + returned.consumed_quantity <= returned.quantity

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.stock_quantity == Decimal("7")
        assert asset.allocated_quantity == Decimal("0")
        assert asset.outbound_quantity == Decimal("3")

    async def test_consumed_part_requires_consumable(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-A9", quantity=10)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("4"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        with pytest.raises(ValidationError):
            await service.return_allocation(
                allocation.id, AllocationReturnRequest(consumed_quantity=Decimal("1")), actor
            )
        with pytest.raises(ValidationError):
            await service.mark_consumed(allocation.id, actor)

    async def test_mark_consumed(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("VT-C2", quantity=8, asset_type=AssetType.MATERIALS)
        service = AllocationService(db_session)
        allocation = await service.allocate(
            AllocationCreate(asset_ref=asset.id, quantity=Decimal("5"), allocated_to_name="Tổ 1", purpose="x"),
            actor,
        )

        consumed = await service.mark_consumed(allocation.id, actor)

        assert consumed.status == AllocationStatus.RETURNED.value
        assert consumed.is_consumed is True
        assert consumed.consumed_quantity == Decimal("5")
        assert consumed.remaining_quantity == Decimal("0")
        assert consumed.reusability_percentage == Decimal("0")

        asset = await AssetService(db_session).get_asset(asset.id)
        assert asset.stock_quantity == Decimal("3")
        assert asset.allocated_quantity == Decimal("0")
        # Outbound was booked at allocation time and is not booked again
        assert asset.outbound_quantity == Decimal("5")
        assert asset.closing_quantity == Decimal("3")

    async def test_mark_overdue(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-O1", quantity=5)
        service = AllocationService(db_session)
        today = date(2026, 3, 10)
        late = await service.allocate(
            AllocationCreate(
                asset_ref=asset.id, allocated_to_name="Tổ 1", purpose="x",
                expected_return_date=today - timedelta(days=1),
            ),
            actor,
        )
        on_time = await service.allocate(
            AllocationCreate(
                asset_ref=asset.id, allocated_to_name="Tổ 2", purpose="x",
                expected_return_date=today,
            ),
            actor,
        )

        marked = await service.mark_overdue(actor, today=today)

        assert [a.id for a in marked] == [late.id]
        assert (await service.get_allocation(late.id)).status == AllocationStatus.OVERDUE.value
        assert (await service.get_allocation(on_time.id)).status == AllocationStatus.ACTIVE.value

        # Overdue allocations can still be returned
        returned, _ = await service.return_allocation(late.id, AllocationReturnRequest(), actor)
        assert returned.status == AllocationStatus.RETURNED.value

    async def test_upcoming_returns(self, db_session: AsyncSession, actor: Actor, make_asset):
        asset = await make_asset("CC-U1", quantity=5)
        service = AllocationService(db_session)
        today = date(2026, 3, 10)
        for offset in (2, 30):
            await service.allocate(
                AllocationCreate(
                    asset_ref=asset.id, allocated_to_name=f"Tổ {offset}", purpose="x",
                    expected_return_date=today + timedelta(days=offset),
                ),
                actor,
            )

        rows = await service.list_upcoming_returns(7, today=today)
        assert [(a.allocated_to_name, days) for a, days in rows] == [("Tổ 2", 2)]

    async def test_missing_allocation(self, db_session: AsyncSession, actor: Actor):
        with pytest.raises(NotFoundError):
            await AllocationService(db_session).mark_consumed(999, actor)


class TestAllocationAPI:
    """API tests for allocation endpoints."""

    async def test_allocate_and_partial_return(self, client: AsyncClient, make_asset):
        asset = await make_asset("CC-API1", quantity=10)

        response = await client.post(
            "/api/v1/allocations",
            json={"asset_ref": asset.id, "quantity": "10", "allocated_to_name": "Đội thi công", "purpose": "Dự án B"},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["asset_code"] == "CC-API1"
        assert data["allocated_by_id"] == 7

        response = await client.post(
            f"/api/v1/allocations/{data['id']}/return",
            json={"return_quantity": "4", "return_condition": "good"},
        )
        assert response.status_code == 200
        body = response.json()["data"]
        assert Decimal(body["returned"]["quantity"]) == Decimal("4")
        assert Decimal(body["remaining"]["quantity"]) == Decimal("6")

        response = await client.get("/api/v1/allocations", params={"status": "active"})
        assert response.json()["data"]["total"] == 1

    async def test_insufficient_stock_error_payload(self, client: AsyncClient, make_asset):
        asset = await make_asset("CC-API2", quantity=5)

        response = await client.post(
            "/api/v1/allocations",
            json={"asset_ref": asset.id, "quantity": "6", "allocated_to_name": "Tổ 1", "purpose": "x"},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "quantity"
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert Decimal(body["context"]["available"]) == Decimal("5")

    async def test_missing_purpose_rejected(self, client: AsyncClient, make_asset):
        asset = await make_asset("CC-API3", quantity=5)
        response = await client.post(
            "/api/v1/allocations",
            json={"asset_ref": asset.id, "allocated_to_name": "Tổ 1"},
        )
        assert response.status_code == 422

    async def test_consume_and_scan(self, client: AsyncClient, make_asset):
        asset = await make_asset("VT-API4", quantity=5, asset_type=AssetType.MATERIALS)
        response = await client.post(
            "/api/v1/allocations",
            json={
                "asset_ref": asset.id, "quantity": "2", "allocated_to_name": "Tổ 1", "purpose": "x",
                "expected_return_date": "2026-01-01",
            },
        )
        allocation_id = response.json()["data"]["id"]

        response = await client.post("/api/v1/allocations/overdue/scan", params={"today": "2026-02-01"})
        assert [a["id"] for a in response.json()["data"]] == [allocation_id]

        response = await client.post(f"/api/v1/allocations/{allocation_id}/consume")
        assert response.status_code == 200
        assert response.json()["data"]["is_consumed"] is True
