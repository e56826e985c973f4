"""
Storage access for time entries.

Thin CRUD layer over the async session. Listing queries join the employee
name so callers can order and label rows without lazy loads.
"""

from __future__ import annotations

import calendar
from datetime import date

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from worklog.db.models import Category, Employee, TimeEntry
from worklog.services.tickets import detach_entry


class EntryNotFoundError(LookupError):
    pass


def month_bounds(month: str) -> tuple[date, date]:
    """``"2025-03"`` -> (2025-03-01, 2025-03-31)."""
    try:
        year_str, month_str = month.split("-")
        year, mon = int(year_str), int(month_str)
        last = calendar.monthrange(year, mon)[1]
    except ValueError as exc:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM") from exc
    return date(year, mon, 1), date(year, mon, last)


class EntryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self) -> Select:
        return select(TimeEntry, Employee.name).join(
            Employee, Employee.id == TimeEntry.employee_id
        )

    async def _run(self, stmt: Select) -> list[tuple[TimeEntry, str]]:
        result = await self.db.execute(stmt)
        return [(entry, name) for entry, name in result.all()]

    async def list_entries(
        self,
        employee_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        category: Category | None = None,
        categories: tuple[Category, ...] | None = None,
    ) -> list[tuple[TimeEntry, str]]:
        """Entries with their employee name, newest date first."""
        stmt = self._base_query()
        if employee_id is not None:
            stmt = stmt.where(TimeEntry.employee_id == employee_id)
        if date_from is not None:
            stmt = stmt.where(TimeEntry.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(TimeEntry.date <= date_to)
        if category is not None:
            stmt = stmt.where(TimeEntry.category == category)
        if categories:
            stmt = stmt.where(TimeEntry.category.in_(categories))
        stmt = stmt.order_by(TimeEntry.date.desc(), Employee.name, TimeEntry.id)
        return await self._run(stmt)

    async def list_all(self) -> list[tuple[TimeEntry, str]]:
        return await self.list_entries()

    async def list_by_employee(self, employee_id: int) -> list[tuple[TimeEntry, str]]:
        return await self.list_entries(employee_id=employee_id)

    async def list_by_month(
        self, month: str, employee_id: int | None = None
    ) -> list[tuple[TimeEntry, str]]:
        first, last = month_bounds(month)
        return await self.list_entries(employee_id=employee_id, date_from=first, date_to=last)

    async def get(self, entry_id: int) -> TimeEntry:
        entry = await self.db.get(TimeEntry, entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def find_by_date(self, employee_id: int) -> dict[date, TimeEntry]:
        """Latest entry per date for one employee (used by imports)."""
        result = await self.db.execute(
            select(TimeEntry)
            .where(TimeEntry.employee_id == employee_id)
            .order_by(TimeEntry.date, TimeEntry.id)
        )
        return {entry.date: entry for entry in result.scalars().all()}

    async def insert(self, entry: TimeEntry) -> TimeEntry:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def update(self, entry: TimeEntry) -> TimeEntry:
        await self.db.flush()
        return entry

    async def delete(self, entry: TimeEntry) -> None:
        await detach_entry(self.db, entry.id)
        await self.db.delete(entry)
        await self.db.flush()

    async def delete_for_employee(self, employee_id: int) -> int:
        result = await self.db.execute(
            delete(TimeEntry).where(TimeEntry.employee_id == employee_id)
        )
        return result.rowcount or 0
