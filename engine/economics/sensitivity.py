"""Sensitivity analysis for TCO comparisons.

Provides one-at-a-time (OAT) sensitivity sweeps suitable for spider
plots and tornado diagrams.  Each variable is varied independently
while all others remain at their base-case values.

Inputs are frozen dataclasses, so each sweep point is a fresh copy built
with :func:`dataclasses.replace` and runs share nothing.  Points can be
evaluated on a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from .comparison import compare
from .errors import TCOError

logger = logging.getLogger(__name__)

_ROOTS = ("baseline", "alternative", "financials")
_METRIC_KEYS = ("npv_savings", "payback_years", "roi_percent", "tco_savings")


@dataclass(frozen=True)
class _Inputs:
    baseline: Any
    alternative: Any
    financials: Any


# ======================================================================
# Helpers
# ======================================================================

def _get_path(obj: Any, path: str) -> Any:
    """Read a dotted attribute *path* such as ``"financials.discount_rate"``."""
    for key in path.split("."):
        obj = getattr(obj, key)
    return obj


def _replace_path(obj: Any, keys: list[str], value: Any) -> Any:
    """Copy of *obj* with the attribute at *keys* set to *value*."""
    head = keys[0]
    if len(keys) == 1:
        return replace(obj, **{head: value})
    return replace(obj, **{head: _replace_path(getattr(obj, head), keys[1:], value)})


def _with_value(inputs: _Inputs, path: str, value: float) -> _Inputs:
    keys = path.split(".")
    if keys[0] not in _ROOTS or len(keys) < 2:
        raise ValueError(f"param_path must start with one of {_ROOTS}: {path!r}")

    try:
        current = _get_path(inputs, path)
    except AttributeError:
        raise ValueError(f"unknown parameter {path!r}") from None
    if isinstance(current, int) and not isinstance(current, bool):
        value = int(round(value))
    return _replace_path(inputs, keys, value)


def _extract_metrics(result) -> dict[str, float | None]:
    summary = result.summary()
    return {k: summary.get(k) for k in _METRIC_KEYS}


def _evaluate(
    inputs: _Inputs, assumptions: CostAssumptions
) -> dict[str, Any]:
    """Run one comparison; a failure is recorded, not raised."""
    try:
        result = compare(inputs.baseline, inputs.alternative, inputs.financials, assumptions)
    except TCOError as exc:
        logger.debug("Sensitivity point failed: %s", exc)
        out: dict[str, Any] = {k: None for k in _METRIC_KEYS}
        out["error"] = exc.code
        return out
    return _extract_metrics(result)


# ======================================================================
# Main entry point
# ======================================================================

def sensitivity_analysis(
    baseline: Any,
    alternative: Any,
    financials: Any,
    variables: list[dict],
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
    max_workers: int = 1,
) -> dict:
    """Run one-at-a-time sensitivity analysis.

    Parameters
    ----------
    baseline, alternative, financials
        Base-case inputs, as accepted by :func:`compare`.  Never mutated.
    variables : list[dict]
        Each entry describes one sensitivity variable::

            {
                "name": "Discount Rate",
                "param_path": "financials.discount_rate",
                "range": [0.04, 0.12],
                "points": 5,          # optional, default 11
            }

        ``param_path`` is a dotted attribute path rooted at ``baseline``,
        ``alternative`` or ``financials``, e.g.
        ``"alternative.unit_costs.tank_unit_cost"``.  Integer parameters
        are rounded to the nearest whole value.
    assumptions : CostAssumptions
        Assumption set shared by every run.
    max_workers : int
        Threads used to evaluate sweep points; ``1`` runs serially.

    Returns
    -------
    dict
        * ``"spider"`` -- ``{name: [{"value": v, "npv_savings": ..., ...}, ...]}``
        * ``"tornado"`` -- ``{name: {"low_value", "high_value",
          "low_npv_savings", "high_npv_savings", "base_npv_savings", ...}}``
        * ``"base_results"`` -- metrics of the unperturbed case.

    Raises
    ------
    TCOError
        If the base case itself fails.
    ValueError
        If a ``param_path`` does not name an input field.
    """
    base_inputs = _Inputs(baseline, alternative, financials)

    # --- Base case must succeed ---
    base_result = compare(baseline, alternative, financials, assumptions)
    base_metrics = _extract_metrics(base_result)

    # --- Build every sweep point up front ---
    plan: list[tuple[str, float, _Inputs]] = []
    ranges: dict[str, tuple[float, float]] = {}
    for var in variables:
        name: str = var["name"]
        param_path: str = var["param_path"]
        low_val, high_val = (float(v) for v in var["range"])
        n_points = max(int(var.get("points", 11)), 2)

        ranges[name] = (low_val, high_val)
        for val in np.linspace(low_val, high_val, n_points).tolist():
            plan.append((name, val, _with_value(base_inputs, param_path, val)))

    # --- Evaluate ---
    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda p: _evaluate(p[2], assumptions), plan))
    else:
        outcomes = [_evaluate(p[2], assumptions) for p in plan]

    spider: dict[str, list[dict[str, Any]]] = {name: [] for name in ranges}
    for (name, val, _), metrics in zip(plan, outcomes):
        entry: dict[str, Any] = {"value": val}
        entry.update(metrics)
        spider[name].append(entry)

    # --- Tornado data from the extreme ends of each sweep ---
    tornado: dict[str, dict[str, Any]] = {}
    for name, sweep in spider.items():
        low_result, high_result = sweep[0], sweep[-1]
        low_val, high_val = ranges[name]
        row: dict[str, Any] = {"low_value": low_val, "high_value": high_val}
        for key in _METRIC_KEYS:
            row[f"low_{key}"] = low_result.get(key)
            row[f"high_{key}"] = high_result.get(key)
            row[f"base_{key}"] = base_metrics.get(key)
        low_npv, high_npv = low_result.get("npv_savings"), high_result.get("npv_savings")
        # A failed end has no spread.
        row["npv_spread"] = (
            None if low_npv is None or high_npv is None else abs(high_npv - low_npv)
        )
        tornado[name] = row

    logger.info(
        "Sensitivity sweep: %d variables, %d runs, %d worker(s)",
        len(spider), len(plan), max_workers,
    )
    return {
        "spider": spider,
        "tornado": tornado,
        "base_results": base_metrics,
    }
