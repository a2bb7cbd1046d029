"""Error kinds raised by the TCO engine.

Three failure modes are kept distinct so the caller can tell bad input
apart from an impossible configuration and from a numeric breakdown:

* :class:`ValidationError` -- fields missing or outside their bounds,
  detected before any arithmetic runs.
* :class:`ConfigurationError` -- individually valid inputs that combine
  into a physically impossible state.
* :class:`CalculationError` -- non-finite numbers produced during
  escalation, discounting or aggregation.

None of them are retried; they are deterministic in their inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


# ======================================================================
# Violations
# ======================================================================

MISSING = "missing"
OUT_OF_RANGE = "out_of_range"
INVALID = "invalid"


def _json_value(value: Any) -> Any:
    """*value* in a form strict JSON encoders accept."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, (str, int, float)):
        return value
    return repr(value)


@dataclass(frozen=True)
class Violation:
    """A single rejected input field.

    Parameters
    ----------
    field : str
        Dotted path of the offending field, e.g. ``"baseline.rack_count"``.
    kind : str
        One of ``"missing"``, ``"out_of_range"`` or ``"invalid"``.
    bound : tuple[float, float] or None
        The ``(min, max)`` range the value was checked against, when the
        violation is a range violation.
    actual : Any
        The value that was supplied (``None`` for missing fields).
    """

    field: str
    kind: str
    bound: tuple[float, float] | None = None
    actual: Any = None

    def message(self) -> str:
        if self.kind == MISSING:
            return f"{self.field} is required"
        if self.kind == OUT_OF_RANGE and self.bound is not None:
            lo, hi = self.bound
            return f"{self.field} must be between {lo} and {hi}, got {self.actual}"
        return f"{self.field} is invalid: {self.actual!r}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "kind": self.kind,
            "bound": list(self.bound) if self.bound is not None else None,
            "actual": _json_value(self.actual),
            "message": self.message(),
        }


# ======================================================================
# Exceptions
# ======================================================================

class TCOError(Exception):
    """Base class for all engine errors."""

    code = "TCO_ERROR"


class ValidationError(TCOError):
    """One or more inputs are missing or outside their documented bounds."""

    code = "VALIDATION_ERROR"

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        summary = "; ".join(v.message() for v in self.violations)
        super().__init__(f"{len(self.violations)} invalid parameter(s): {summary}")

    @property
    def fields(self) -> list[str]:
        """Dotted names of every rejected field, in detection order."""
        return [v.field for v in self.violations]


class ConfigurationError(TCOError):
    """Inputs are in bounds but describe a physically impossible system."""

    code = "CONFIGURATION_ERROR"


class CalculationError(TCOError):
    """A numeric failure (overflow, NaN) was detected in the results."""

    code = "CALCULATION_ERROR"
