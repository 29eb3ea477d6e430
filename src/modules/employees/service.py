"""Service for Employees module."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateError, NotFoundError
from src.modules.employees.models import Employee
from src.modules.employees.schemas import EmployeeCreate


class EmployeeService:
    """Directory of employees that assets are allocated to."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        code = data.employee_code.strip()
        existing = await self.db.execute(select(Employee).where(Employee.employee_code == code))
        if existing.scalar_one_or_none():
            raise DuplicateError("Employee", "employee_code", code)

        employee = Employee(
            employee_code=code,
            full_name=data.full_name.strip(),
            department=data.department,
            email=data.email,
            is_active=True,
        )
        self.db.add(employee)
        await self.db.commit()
        await self.db.refresh(employee)
        return employee

    async def get_employee(self, employee_id: int) -> Employee:
        result = await self.db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def list_employees(
        self,
        search: str | None = None,
        active_only: bool = True,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[Employee], int]:
        query = select(Employee).order_by(Employee.full_name)
        if active_only:
            query = query.where(Employee.is_active.is_(True))
        if search and search.strip():
            s = f"%{search.strip()}%"
            query = query.where(or_(Employee.full_name.ilike(s), Employee.employee_code.ilike(s)))

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total
