"""Tests for the reference data endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestDefaults:
    async def test_defaults(self, client: AsyncClient):
        resp = await client.get("/api/v1/config/defaults")
        assert resp.status_code == 200
        data = resp.json()
        assert data["assumptions"]["limits"]["rack_count"] == [1, 1000]
        assert data["assumptions"]["exchange_pairs"]["USD_EUR"] == 0.92
        assert data["assumptions"]["energy_costs"]["EU"] == 0.28

    async def test_equipment_defaults(self, client: AsyncClient):
        data = (await client.get("/api/v1/config/defaults")).json()
        air = data["equipment"]["air_cooling"]
        immersion = data["equipment"]["immersion_cooling"]
        assert air["hvac_cop"] == 2.5
        assert air["kind"] == "air_cooling"
        assert immersion["coolant_replacement_cycle_months"] == 24
        assert immersion["unit_costs"]["tank_unit_cost"] == 35000.0

    async def test_financial_defaults(self, client: AsyncClient):
        data = (await client.get("/api/v1/config/defaults")).json()
        assert data["financial"]["analysis_years"] is None
        assert data["financial"]["region"] == "US"
