from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.core.dependencies import get_current_user
from app.models.auth import UserInfo
from app.services.dtr_client import dtr_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dtr", tags=["dtr"])


def _envelope(status_code: int, *, success: bool, data: Any, message: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "message": message, "data": data},
    )


@router.get("/employees/search")
async def search_dtr_employees(
    q: str | None = None,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    if not q:
        return _envelope(status.HTTP_400_BAD_REQUEST, success=False, data=[], message="Search query is required")

    if not dtr_client.initialized:
        return _envelope(
            status.HTTP_503_SERVICE_UNAVAILABLE, success=False, data=[], message="DTR API is not configured"
        )

    employees = await dtr_client.search_employees(q)
    return _envelope(status.HTTP_200_OK, success=True, data=employees)


@router.get("/employees/{employee_id}")
async def get_dtr_employee(
    employee_id: int,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    if not dtr_client.initialized:
        return _envelope(
            status.HTTP_503_SERVICE_UNAVAILABLE, success=False, data=None, message="DTR API is not configured"
        )

    employee = await dtr_client.get_employee_by_id(employee_id)
    if not employee:
        return _envelope(status.HTTP_404_NOT_FOUND, success=False, data=None, message="Employee not found")

    return _envelope(status.HTTP_200_OK, success=True, data=employee)
