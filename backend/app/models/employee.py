"""Employee models for the front-desk employee directory."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Employee(BaseModel):
    """Employee document as stored in Cosmos DB."""

    id: str
    dtr_id: int | None = None
    full_name: str
    email: str | None = None
    department: str | None = None
    is_active: bool = True
    last_synced_at: datetime | None = None


class EmployeeSearchResult(BaseModel):
    """Employee fields exposed to the front desk."""

    id: str
    dtr_id: int | None = None
    full_name: str
    email: str | None = None
    department: str | None = None


class EmployeeSearchResponse(BaseModel):
    success: bool
    message: str | None = None
    data: list[EmployeeSearchResult] = []


class SyncEmployeeRecord(BaseModel):
    """One employee as pushed by the DTR system."""

    id: int
    name: str = Field(min_length=1)
    email: str | None = None
    department: str | None = None


class SyncEmployeesRequest(BaseModel):
    employees: list[SyncEmployeeRecord]


def employee_document_id(dtr_id: int) -> str:
    return f"dtr-{dtr_id}"


def to_search_result(employee: Employee) -> EmployeeSearchResult:
    return EmployeeSearchResult(
        id=employee.id,
        dtr_id=employee.dtr_id,
        full_name=employee.full_name,
        email=employee.email,
        department=employee.department,
    )
