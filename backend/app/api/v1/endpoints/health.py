from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import get_current_user
from app.models.auth import UserInfo
from app.services.dtr_client import dtr_client
from app.services.employee_service import employee_service

router = APIRouter(prefix="/health", tags=["health"])


async def _service_status(initialized: bool, check) -> str:
    if not initialized:
        return "not_configured"
    try:
        return "ok" if await check() else "error"
    except Exception:
        return "error"


@router.get("")
async def health_check():
    services: dict[str, str] = {
        "cosmos_db": await _service_status(employee_service.initialized, employee_service.check_connection),
        "dtr_api": await _service_status(dtr_client.initialized, dtr_client.check_connection),
    }

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(user: UserInfo = Depends(get_current_user)):
    return {"status": "ok", "user": user.model_dump()}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
