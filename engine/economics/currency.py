"""Static-rate currency conversion.

Rates are injected (see :class:`~engine.economics.assumptions.CostAssumptions`);
nothing here fetches live quotes.
"""

from __future__ import annotations

from collections.abc import Mapping


def convert_currency(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, float],
) -> float:
    """Convert *amount* between currencies using a pair-rate table.

    Parameters
    ----------
    amount : float
        Value in ``from_currency``.
    from_currency, to_currency : str
        ISO 4217 codes.
    rates : Mapping[str, float]
        Pair rates keyed ``"FROM_TO"``.  When the direct pair is absent the
        inverse pair is used.

    Returns
    -------
    float
        Value in ``to_currency``.

    Raises
    ------
    KeyError
        If neither the pair nor its inverse is present.
    """
    if from_currency == to_currency:
        return amount

    direct = rates.get(f"{from_currency}_{to_currency}")
    if direct:
        return amount * direct

    inverse = rates.get(f"{to_currency}_{from_currency}")
    if inverse:
        return amount / inverse

    raise KeyError(f"Exchange rate not found for {from_currency} to {to_currency}")


def usd_pair_rates(rates_from_usd: Mapping[str, float]) -> dict[str, float]:
    """Expand a ``{currency: units per USD}`` table into ``USD_XXX`` pairs."""
    return {f"USD_{code}": rate for code, rate in rates_from_usd.items() if code != "USD"}
