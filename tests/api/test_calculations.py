"""Tests for the calculation, session, sensitivity and report endpoints."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from app.core.rate_limit import calculation_limiter
from app.models.calculation_session import CalculationSession

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/calculations"


# ======================================================================
# Validation
# ======================================================================


class TestValidate:
    async def test_valid_configuration(self, client: AsyncClient, calculation_payload):
        resp = await client.post(f"{BASE}/validate", json=calculation_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is True
        assert data["violations"] == []

    async def test_invalid_configuration(self, client: AsyncClient, calculation_payload):
        calculation_payload["air_cooling"]["rack_count"] = 0
        calculation_payload["financial"]["discount_rate"] = 0.30
        resp = await client.post(f"{BASE}/validate", json=calculation_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is False
        fields = {v["field"] for v in data["violations"]}
        assert fields == {"baseline.rack_count", "financials.discount_rate"}

    async def test_tank_size_with_unit_suffix(self, client: AsyncClient, calculation_payload):
        """Tank sizes may be written as '23U'."""
        calculation_payload["immersion_cooling"] = {
            "input_method": "manual_config",
            "tanks": [{"size_u": "23U", "quantity": 4}],
        }
        resp = await client.post(f"{BASE}/validate", json=calculation_payload)
        assert resp.status_code == 200
        assert resp.json()["valid"] is True

    async def test_long_horizon_warning(self, client: AsyncClient, calculation_payload):
        calculation_payload["financial"]["analysis_years"] = 9
        resp = await client.post(f"{BASE}/validate", json=calculation_payload)
        assert resp.json()["valid"] is True
        assert resp.json()["warnings"]

    async def test_non_finite_value(self, client: AsyncClient, calculation_payload):
        """NaN is reported as a string in the violation body."""
        calculation_payload["financial"]["discount_rate"] = float("nan")
        resp = await client.post(
            f"{BASE}/validate",
            content=json.dumps(calculation_payload),
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 200
        (violation,) = resp.json()["violations"]
        assert violation["field"] == "financials.discount_rate"
        assert violation["kind"] == "out_of_range"
        assert violation["actual"] == "nan"


# ======================================================================
# Calculate
# ======================================================================


class TestCalculate:
    async def test_calculate(self, client: AsyncClient, calculation_payload):
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["calculation_id"]
        assert data["share_token"] is None
        summary = data["result"]["summary"]
        assert summary["npv_savings"] > 0
        assert 2.0 <= summary["payback_years"] <= 3.0
        assert summary["breakeven"] is True
        assert len(data["result"]["yearly"]) == 6

    async def test_validation_error_body(self, client: AsyncClient, calculation_payload):
        calculation_payload["financial"]["analysis_years"] = 11
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["violations"][0]["field"] == "financials.analysis_years"
        assert error["violations"][0]["bound"] == [1, 10]

    async def test_nan_discount_rate(self, client: AsyncClient, calculation_payload):
        calculation_payload["financial"]["discount_rate"] = float("nan")
        resp = await client.post(
            f"{BASE}/calculate",
            content=json.dumps(calculation_payload),
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert [v["field"] for v in error["violations"]] == ["financials.discount_rate"]

    async def test_missing_discount_rate(self, client: AsyncClient, calculation_payload):
        del calculation_payload["financial"]["discount_rate"]
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 422
        violation = resp.json()["error"]["violations"][0]
        assert violation["kind"] == "missing"

    async def test_malformed_body(self, client: AsyncClient):
        """Schema-level errors keep FastAPI's own 422 body."""
        resp = await client.post(f"{BASE}/calculate", json={"air_cooling": {}})
        assert resp.status_code == 422
        assert "detail" in resp.json()

    async def test_currency(self, client: AsyncClient, calculation_payload):
        calculation_payload["financial"]["currency"] = "EUR"
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 200
        assert resp.json()["result"]["currency"] == "EUR"

    async def test_rate_limited(self, client: AsyncClient, calculation_payload, monkeypatch):
        monkeypatch.setattr(calculation_limiter, "max_requests", 2)
        for _ in range(2):
            resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
            assert resp.status_code == 200
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 429


# ======================================================================
# Sessions
# ======================================================================


class TestSessions:
    async def test_save_and_open(self, client: AsyncClient, calculation_payload):
        calculation_payload["save_session"] = True
        resp = await client.post(f"{BASE}/calculate", json=calculation_payload)
        assert resp.status_code == 200
        created = resp.json()
        token = created["share_token"]
        assert token
        assert created["expires_at"]

        resp = await client.get(f"{BASE}/sessions/{token}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["access_count"] == 1
        assert data["configuration"]["air_cooling"]["rack_count"] == 100
        assert data["results"]["configuration_hash"] == data["configuration_hash"]

        resp = await client.get(f"{BASE}/sessions/{token}")
        assert resp.json()["access_count"] == 2

    async def test_unknown_token(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/sessions/does-not-exist")
        assert resp.status_code == 404

    async def test_expired_session(self, client: AsyncClient, session_factory):
        async with session_factory() as db:
            db.add(
                CalculationSession(
                    share_token="expired-token",
                    configuration={},
                    results={},
                    configuration_hash="0" * 64,
                    currency="USD",
                    expires_at=datetime.now(timezone.utc) - timedelta(days=1),
                )
            )
            await db.commit()

        resp = await client.get(f"{BASE}/sessions/expired-token")
        assert resp.status_code == 410


# ======================================================================
# Sensitivity
# ======================================================================


class TestSensitivity:
    async def test_sweep(self, client: AsyncClient, calculation_payload):
        calculation_payload["variables"] = [
            {
                "name": "Discount Rate",
                "param_path": "financials.discount_rate",
                "range": [0.04, 0.12],
                "points": 3,
            }
        ]
        resp = await client.post(f"{BASE}/sensitivity", json=calculation_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["spider"]["Discount Rate"]) == 3
        assert "npv_spread" in data["tornado"]["Discount Rate"]

    async def test_non_numeric_target_recorded(self, client: AsyncClient, calculation_payload):
        """Sweeping a structured field records a validation error per point."""
        calculation_payload["variables"] = [
            {"name": "Tanks", "param_path": "alternative.tanks", "range": [1, 2], "points": 2}
        ]
        resp = await client.post(f"{BASE}/sensitivity", json=calculation_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert [p["error"] for p in data["spider"]["Tanks"]] == ["VALIDATION_ERROR"] * 2
        assert data["tornado"]["Tanks"]["npv_spread"] is None

    async def test_unknown_parameter(self, client: AsyncClient, calculation_payload):
        calculation_payload["variables"] = [
            {"name": "Bogus", "param_path": "financials.bogus", "range": [0, 1]}
        ]
        resp = await client.post(f"{BASE}/sensitivity", json=calculation_payload)
        assert resp.status_code == 400

    async def test_requires_variables(self, client: AsyncClient, calculation_payload):
        calculation_payload["variables"] = []
        resp = await client.post(f"{BASE}/sensitivity", json=calculation_payload)
        assert resp.status_code == 422


# ======================================================================
# Reports
# ======================================================================


class TestReports:
    async def test_csv(self, client: AsyncClient, calculation_payload):
        resp = await client.post(f"{BASE}/report?format=csv", json=calculation_payload)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "coolcost_tco_" in resp.headers["content-disposition"]
        lines = resp.text.strip().splitlines()
        assert lines[0].startswith("year,")
        assert len(lines) == 7

    async def test_pdf(self, client: AsyncClient, calculation_payload):
        calculation_payload["title"] = "Hall B Retrofit"
        resp = await client.post(f"{BASE}/report", json=calculation_payload)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    async def test_unknown_format(self, client: AsyncClient, calculation_payload):
        resp = await client.post(f"{BASE}/report?format=xlsx", json=calculation_payload)
        assert resp.status_code == 422

    async def test_invalid_inputs(self, client: AsyncClient, calculation_payload):
        calculation_payload["air_cooling"]["rack_count"] = 5000
        resp = await client.post(f"{BASE}/report?format=csv", json=calculation_payload)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
