"""Tests for engine.reporting: PDF and CSV exports."""

from __future__ import annotations

import csv
import io

import pytest

from engine.economics.comparison import compare
from engine.reporting.csv_export import comparison_rows, generate_csv_report
from engine.reporting.pdf_report import generate_pdf_report


@pytest.fixture
def result_dict(air_cooling, immersion_cooling, financials) -> dict:
    return compare(air_cooling, immersion_cooling, financials).as_dict()


class TestCSVExport:
    def test_header_and_rows(self, result_dict):
        reader = csv.DictReader(io.StringIO(generate_csv_report(result_dict)))
        rows = list(reader)
        assert len(rows) == 6
        assert reader.fieldnames[0] == "year"
        assert "alternative_consumables" in reader.fieldnames
        assert rows[0]["currency"] == "USD"

    def test_row_values(self, result_dict):
        rows = comparison_rows(result_dict)
        year0 = rows[0]
        assert year0["baseline_capital"] == pytest.approx(
            result_dict["baseline"]["capex_total"]
        )
        assert year0["baseline_energy"] == 0.0
        assert rows[-1]["cumulative_savings"] == pytest.approx(
            result_dict["summary"]["tco_savings"]
        )


class TestPDFReport:
    def test_valid_pdf(self, result_dict):
        buf = generate_pdf_report(result_dict)
        data = buf.read()
        assert data.startswith(b"%PDF")
        assert len(data) > 1000

    def test_no_payback(self, air_cooling, financials, immersion_cooling):
        """A scenario that never pays back still renders."""
        from dataclasses import replace

        from engine.cooling.equipment import ImmersionUnitCosts

        pricey = replace(
            immersion_cooling, unit_costs=ImmersionUnitCosts(tank_unit_cost=500_000.0)
        )
        result = compare(air_cooling, pricey, financials).as_dict()
        assert result["summary"]["payback_years"] is None
        assert generate_pdf_report(result, title="No Payback").read().startswith(b"%PDF")
