"""
Production FastAPI Application

HTTP API, LINE webhook and the in-process cache sweeper.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.asyncpg_setting import (
    close_all_asyncpg_pools,
    get_asyncpg_pool,
    warmup_asyncpg_pool,
)
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Table Booking] Starting up...')

    tracing = TracingConfig(service_name='table-booking-service')
    tracing.setup()
    Logger.base.info('📊 [Table Booking] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Table Booking] Dependency injection wired')

    # Schema bootstrap (btree_gist + tables + constraints), then release the ORM engine
    await create_db_and_tables()
    await dispose_engine()
    Logger.base.info('🗄️  [Table Booking] Database schema ensured')

    await get_asyncpg_pool()
    await warmup_asyncpg_pool()
    Logger.base.info('🏊 [Table Booking] Asyncpg pool initialized and warmed up')

    async with anyio.create_task_group() as tg:
        await container.cache_sweeper().start(task_group=tg)
        Logger.base.info('✅ [Table Booking] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Table Booking] Shutting down...')
        tg.cancel_scope.cancel()

    try:
        await container.messenger().aclose()
        Logger.base.info('📤 [Table Booking] LINE client closed')
    except Exception as e:
        Logger.base.error(f'❌ [Table Booking] Failed to close LINE client: {e}')

    await close_all_asyncpg_pools()
    Logger.base.info('🏊 [Table Booking] Asyncpg pools closed')

    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Table Booking] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
