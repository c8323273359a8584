# contact_api/routers/health.py
import time

from fastapi import APIRouter, Depends

from contact_api.core.settings import Settings
from contact_api.dependencies import get_settings
from contact_api.lib.timestamps import iso_timestamp, utcnow

router = APIRouter(prefix="/api", tags=["health"])
_STARTED = time.monotonic()


def uptime_seconds() -> float:
    return time.monotonic() - _STARTED


@router.get("/health")
async def health_root():
    return {
        "status": "OK",
        "message": "Portfolio backend server is running",
        "timestamp": iso_timestamp(utcnow()),
        "uptime": uptime_seconds(),
    }


@router.get("/test")
async def backend_test(settings: Settings = Depends(get_settings)):
    return {
        "message": "Backend is working!",
        "environment": settings.environment,
        "timestamp": iso_timestamp(utcnow()),
    }
