"""
Test Configuration and Fixtures

This module provides:
- Test environment variables, set before any application module is imported
- Database setup and cleanup for integration tests

Architecture:
- Unit tests (marker `unit`): in-memory adapters from
  test/service/table_booking/unit/in_memory_repos.py, no infrastructure
- Integration tests: real PostgreSQL, schema built by create_db_and_tables(),
  every table truncated before each test
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings and the loguru sinks read these at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['POSTGRES_DB'] = 'table_booking_test_db'
    else:
        os.environ['POSTGRES_DB'] = f'table_booking_test_db_{worker_id}'

    # Create test log directory
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # Pool size settings for tests
    os.environ.setdefault('DB_POOL_SIZE', '2')
    os.environ.setdefault('DB_POOL_MAX_OVERFLOW', '2')
    os.environ.setdefault('ASYNCPG_POOL_MIN_SIZE', '1')
    os.environ.setdefault('ASYNCPG_POOL_MAX_SIZE', '5')


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from src.platform.config.core_setting import settings  # noqa: E402
from src.platform.database.asyncpg_setting import close_all_asyncpg_pools  # noqa: E402
from src.platform.database.orm_db_setting import (  # noqa: E402
    create_db_and_tables,
    dispose_engine,
)


TABLES = ('booking', 'customer', 'dining_table', 'holiday', 'restaurant', 'staff', 'table_hold')


# =============================================================================
# Pytest Hooks
# =============================================================================
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        markers = [m.name for m in item.iter_markers()]
        if 'unit' not in markers:
            item.fixturenames.append('clean_database')


# =============================================================================
# Database Setup and Cleanup
# =============================================================================
async def _setup_test_database() -> None:
    db_url = settings.DATABASE_URL_ASYNC
    test_db = settings.POSTGRES_DB

    # Create database if not exists
    postgres_url = db_url.rsplit('/', 1)[0] + '/postgres'
    engine = create_async_engine(postgres_url, isolation_level='AUTOCOMMIT')
    try:
        async with engine.begin() as conn:
            result = await conn.execute(
                text('SELECT 1 FROM pg_database WHERE datname = :name'), {'name': test_db}
            )
            if not result.fetchone():
                await conn.execute(text(f'CREATE DATABASE {test_db}'))
    finally:
        await engine.dispose()

    # Reset schema, then build it the same way the app does on startup
    reset_engine = create_async_engine(db_url)
    try:
        async with reset_engine.begin() as conn:
            await conn.execute(text('DROP SCHEMA public CASCADE'))
            await conn.execute(text('CREATE SCHEMA public'))
    finally:
        await reset_engine.dispose()

    await create_db_and_tables()
    await dispose_engine()


async def _clean_all_tables() -> None:
    engine = create_async_engine(settings.DATABASE_URL_ASYNC)
    try:
        async with engine.begin() as conn:
            quoted = ', '.join(f'"{t}"' for t in TABLES)
            await conn.execute(text(f'TRUNCATE {quoted} RESTART IDENTITY CASCADE'))
    finally:
        await engine.dispose()


_schema_ready = False


@pytest.fixture(scope='function')
async def clean_database() -> AsyncGenerator[None, None]:
    global _schema_ready
    if not _schema_ready:
        try:
            await _setup_test_database()
        except (OSError, SQLAlchemyError) as e:
            pytest.skip(f'PostgreSQL is not reachable: {e}')
        _schema_ready = True

    await _clean_all_tables()
    yield
    await close_all_asyncpg_pools()
