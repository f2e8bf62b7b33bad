"""API endpoints for Sicredi sync operations."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..auth import verify_api_key, limiter, SYNC_TRIGGER_LIMIT
from .errors import SyncError
from .scheduler import (
    SyncScheduler,
    DEFAULT_INTERVAL_MINUTES,
    MIN_INTERVAL_MINUTES,
    MAX_INTERVAL_MINUTES,
)
from .service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sicredi-sync", tags=["sicredi-sync"])


class StartSyncBody(BaseModel):
    """Request body for starting auto-sync."""
    model_config = ConfigDict(populate_by_name=True)

    interval_minutes: int = Field(
        default=DEFAULT_INTERVAL_MINUTES,
        ge=MIN_INTERVAL_MINUTES,
        le=MAX_INTERVAL_MINUTES,
        alias="intervalMinutes",
        description="Minutes between sync passes (5 minutes to 24 hours)",
    )


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


def get_sync_scheduler(request: Request) -> SyncScheduler:
    return request.app.state.sync_scheduler


def _sync_failure(e: SyncError) -> HTTPException:
    logger.error(f"Sicredi sync request failed: [{e.code}] {e.message}")
    return HTTPException(status_code=502, detail={"success": False, **e.to_dict()})


@router.post("/start")
async def start_auto_sync(
    body: Optional[StartSyncBody] = None,
    scheduler: SyncScheduler = Depends(get_sync_scheduler),
    api_key: str = Depends(verify_api_key),
):
    """Start automatic synchronization; a no-op if it is already running."""
    body = body or StartSyncBody()
    session = scheduler.start(body.interval_minutes)
    return {
        "success": True,
        "message": f"Automatic sync running every {session.interval_minutes} minutes",
        "intervalMinutes": session.interval_minutes,
    }


@router.post("/stop")
async def stop_auto_sync(
    scheduler: SyncScheduler = Depends(get_sync_scheduler),
    api_key: str = Depends(verify_api_key),
):
    """Stop automatic synchronization; a no-op if it is not running."""
    stopped = scheduler.stop()
    return {
        "success": True,
        "message": "Automatic sync stopped" if stopped else "Automatic sync was not running",
    }


@router.get("/status")
async def get_sync_status(
    service: SyncService = Depends(get_sync_service),
    scheduler: SyncScheduler = Depends(get_sync_scheduler),
    api_key: str = Depends(verify_api_key),
):
    """Report whether auto-sync is running, plus gateway status statistics."""
    try:
        stats = await service.get_sync_stats()
    except SyncError as e:
        raise _sync_failure(e)

    session = scheduler.session
    return {
        "success": True,
        "data": {
            "isRunning": scheduler.is_running(),
            "session": session.to_dict() if session else None,
            "stats": stats.model_dump(mode="json", by_alias=True),
        },
    }


@router.post("/perform")
@limiter.limit(SYNC_TRIGGER_LIMIT)
async def perform_sync(
    request: Request,
    service: SyncService = Depends(get_sync_service),
    api_key: str = Depends(verify_api_key),
):
    """
    Run one reconciliation pass now.

    Per-payment failures are reported in ``data.errors``; only a failure to
    list the pending payments fails the request.
    """
    try:
        result = await service.perform_sync()
    except SyncError as e:
        raise _sync_failure(e)
    return {"success": True, "data": result.model_dump(mode="json", by_alias=True)}


@router.post("/client/{client_id}")
@limiter.limit(SYNC_TRIGGER_LIMIT)
async def sync_client(
    request: Request,
    client_id: str,
    service: SyncService = Depends(get_sync_service),
    api_key: str = Depends(verify_api_key),
):
    """Reconcile every Sicredi boleto of one customer."""
    try:
        result = await service.sync_client_payments(client_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SyncError as e:
        raise _sync_failure(e)
    return {"success": True, "data": result.model_dump(mode="json", by_alias=True)}


@router.get("/health")
async def sync_health(request: Request):
    """Health check endpoint for the sync service."""
    gateway = getattr(request.app.state, "gateway", None)
    gateway_health = await gateway.health_check() if gateway else None
    return {"status": "healthy", "service": "sicredi-sync", "gateway": gateway_health}
