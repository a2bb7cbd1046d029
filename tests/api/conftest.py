"""API test infrastructure: async httpx client with a SQLite test database."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB

from app.models.database import Base, get_db

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL column types
# ---------------------------------------------------------------------------

@compiles(PG_UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "CHAR(36)"


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------------------------
# FastAPI app with overridden dependencies
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(session_factory):
    from app.main import create_app
    from app.core.rate_limit import (
        calculation_limiter,
        report_limiter,
        sensitivity_limiter,
    )

    application = create_app()

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _override_get_db

    # Reset rate limiters between tests
    for limiter in (calculation_limiter, sensitivity_limiter, report_limiter):
        limiter.reset()

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------

@pytest.fixture
def calculation_payload() -> dict:
    """100 x 15 kW air racks against 1.5 MW of auto-sized immersion tanks."""
    return {
        "air_cooling": {
            "input_method": "rack_count",
            "rack_count": 100,
            "power_per_rack_kw": 15.0,
        },
        "immersion_cooling": {
            "input_method": "auto_optimize",
            "target_power_kw": 1500.0,
            "unit_costs": {"tank_unit_cost": 95000.0},
        },
        "financial": {
            "analysis_years": 5,
            "discount_rate": 0.08,
            "energy_escalation_rate": 0.03,
            "maintenance_escalation_rate": 0.025,
            "labor_escalation_rate": 0.04,
            "region": "US",
            "currency": "USD",
        },
    }
