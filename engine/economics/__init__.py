"""TCO economics: assumptions, validation, cash flows and comparison.

Only leaf modules are re-exported here; ``engine.cooling`` depends on them,
so the comparison engine is imported from ``engine.economics.comparison``.
"""

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from .currency import convert_currency
from .errors import CalculationError, ConfigurationError, TCOError, ValidationError
from .parameters import FinancialParameters

__all__ = [
    "DEFAULT_ASSUMPTIONS",
    "CostAssumptions",
    "convert_currency",
    "CalculationError",
    "ConfigurationError",
    "TCOError",
    "ValidationError",
    "FinancialParameters",
]
