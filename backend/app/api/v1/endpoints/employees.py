from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_current_user, require_sync_token
from app.models.auth import UserInfo
from app.models.employee import (
    EmployeeSearchResponse,
    EmployeeSearchResult,
    SyncEmployeesRequest,
    to_search_result,
)
from app.services.employee_search import employee_search_service
from app.services.employee_service import employee_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = EmployeeSearchResponse(success=False, message=message, data=[])
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get("/search", response_model=EmployeeSearchResponse)
async def search_employees(
    q: str | None = None,
    limit: int | None = Query(None, ge=1),
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    if not q:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Search query is required")

    top = min(limit or settings.SEARCH_DEFAULT_LIMIT, settings.SEARCH_MAX_LIMIT)

    try:
        employees = await employee_search_service.search(q, top)
    except Exception:
        logger.exception("Employee search failed (q=%r)", q)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to search employees")

    return EmployeeSearchResponse(success=True, data=[to_search_result(e) for e in employees])


@router.post("/sync")
async def sync_employees(
    payload: SyncEmployeesRequest,
    _: None = Depends(require_sync_token),  # noqa: B008
):
    if not employee_service.initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Employee store is not configured",
        )

    try:
        synced = await employee_service.upsert_employees(payload.employees)
    except Exception as err:
        logger.exception("Employee sync failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sync employees",
        ) from err

    return {"status": "ok", "synced": synced}


@router.get("/{employee_id}", response_model=EmployeeSearchResult)
async def get_employee(
    employee_id: str,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        employee = await employee_service.get_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{employee_id}' not found",
        )

    return to_search_result(employee)
