"""Per-year CSV export of a TCO comparison."""

from __future__ import annotations

import csv
import io
from typing import Any

CATEGORIES = ("capital", "energy", "maintenance", "labor", "consumables")


def _fieldnames() -> list[str]:
    keys = ["year"]
    for side in ("baseline", "alternative"):
        keys.extend(f"{side}_{c}" for c in CATEGORIES)
        keys.append(f"{side}_total")
    keys.extend(["savings", "cumulative_savings", "discounted_savings", "currency"])
    return keys


def comparison_rows(result: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten ``ComparisonResult.as_dict()`` into one row per year."""
    base_flows = result["baseline"]["cash_flows"]
    alt_flows = result["alternative"]["cash_flows"]
    rows = []
    for i, yearly in enumerate(result["yearly"]):
        row: dict[str, Any] = {"year": yearly["year"]}
        for side, flows in (("baseline", base_flows), ("alternative", alt_flows)):
            flow = flows[i]
            for c in CATEGORIES:
                row[f"{side}_{c}"] = flow[c]
            row[f"{side}_total"] = flow["total"]
        row["savings"] = yearly["savings"]
        row["cumulative_savings"] = yearly["cumulative_savings"]
        row["discounted_savings"] = yearly["discounted_savings"]
        row["currency"] = result["currency"]
        rows.append(row)
    return rows


def generate_csv_report(result: dict[str, Any]) -> str:
    """Render the yearly comparison as CSV text (header row first).

    Values are written unrounded; formatting is left to the consumer.
    """
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_fieldnames())
    writer.writeheader()
    writer.writerows(comparison_rows(result))
    return buf.getvalue()
