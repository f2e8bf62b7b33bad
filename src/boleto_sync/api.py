import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .auth import limiter
from .config import SyncSettings
from .database import DatabaseManager
from .gateway import BoletoGatewayBase, get_gateway
from .sync.adapters import build_sync_service
from .sync.api import router as sync_router
from .sync.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[SyncSettings] = None,
    gateway: Optional[BoletoGatewayBase] = None,
) -> FastAPI:
    """Build the sync API. The database, gateway and scheduler live on ``app.state``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or SyncSettings.from_env()
        db = DatabaseManager(cfg.database_url)
        await db.initialize()

        app.state.db = db
        app.state.gateway = gateway or get_gateway(cfg.gateway)
        app.state.sync_service = build_sync_service(
            db,
            app.state.gateway,
            batch_limit=cfg.batch_limit,
            stats_limit=cfg.stats_limit,
        )
        app.state.sync_scheduler = SyncScheduler(app.state.sync_service)

        if cfg.auto_start:
            app.state.sync_scheduler.start(cfg.interval_minutes)
        try:
            yield
        finally:
            if app.state.sync_scheduler.is_running():
                app.state.sync_scheduler.stop()
            await app.state.sync_scheduler.drain()
            await db.shutdown()

    app = FastAPI(title="Boleto Sync - Sicredi payment reconciliation", lifespan=lifespan)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.include_router(sync_router)
    return app


app = create_app()
