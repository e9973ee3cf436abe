"""Expected value and Kelly criterion sizing — the single source of truth.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

Every function is *total* over its documented domain: a missing (``None``),
zero or otherwise unusable input degrades to ``0.0`` rather than raising,
because a blank price in a form is a normal state and must surface as "no
bet", not as an error.  The only exceptions raised here are for caller
programming errors (e.g. a non-positive Kelly divisor).

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

from typing import Final, Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Full Kelly.  Fractional sizing is opt-in via ``divisor``.
_FULL_KELLY_DIVISOR: Final[float] = 1.0

#: No cap by default: the raw Kelly fraction can never exceed 1.0 anyway.
_NO_CAP: Final[float] = 1.0


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------


def kelly_fraction(p: Optional[float], decimal_odds: Optional[float]) -> float:
    """Full Kelly bankroll fraction for a simple win/loss bet.

    The Kelly criterion maximises expected log-wealth.  For net odds
    ``b = decimal − 1``, win probability ``p`` and ``q = 1 − p``::

        f*  =  (b · p − q) / b                                    (1)

    Negative values (a lay recommendation) are reported as 0: the engine
    never suggests betting against a price.

    Args:
        p: Fair win probability in ``(0, 1)``.
        decimal_odds: Offered decimal price.

    Returns:
        Fraction of bankroll in ``[0, 1)``; 0.0 when either input is
        missing or non-positive, or when there is no edge
        (``p ≤ 1 / decimal``).

    Examples::

        kelly_fraction(0.55, 2.0)    →  0.10
        kelly_fraction(0.50, 1.9091) →  0.00   (negative edge → no bet)
        kelly_fraction(None, 2.0)    →  0.00
    """
    if not p or not decimal_odds or p <= 0.0 or decimal_odds <= 0.0:
        return 0.0
    net = decimal_odds - 1.0
    if net <= 0.0:
        return 0.0
    full = (net * p - (1.0 - p)) / net
    return max(0.0, full)


def fractional_kelly(
    p: Optional[float],
    decimal_odds: Optional[float],
    *,
    divisor: float = _FULL_KELLY_DIVISOR,
    max_fraction: float = _NO_CAP,
) -> float:
    """Kelly fraction divided by *divisor* and capped at *max_fraction*.

    Half-Kelly (``divisor=2``) is the usual practice when the probability
    estimate itself is uncertain.

    Raises:
        ValueError: If ``divisor <= 0``.
    """
    if divisor <= 0.0:
        raise ValueError(f"divisor must be > 0, got {divisor!r}.")
    return min(kelly_fraction(p, decimal_odds) / divisor, max_fraction)


def kelly_stake(
    bankroll: Optional[float],
    p: Optional[float],
    decimal_odds: Optional[float],
    *,
    divisor: float = _FULL_KELLY_DIVISOR,
) -> float:
    """Dollar stake recommended by (fractional) Kelly for *bankroll*."""
    if not bankroll or bankroll <= 0.0:
        return 0.0
    return bankroll * fractional_kelly(p, decimal_odds, divisor=divisor)


# ---------------------------------------------------------------------------
# Expected value
# ---------------------------------------------------------------------------


def expected_value(
    stake: Optional[float],
    p: Optional[float],
    decimal_odds: Optional[float],
) -> float:
    """Signed expected profit of staking *stake* at *decimal_odds*.

    ::

        EV  =  stake · (p · b − (1 − p)),   b = decimal − 1

    Returns 0.0 when any input is missing or zero.

    Examples::

        expected_value(100, 0.55, 2.0)    →  10.0
        expected_value(100, 0.50, 1.9091) →  -4.55
    """
    if not stake or not p or not decimal_odds:
        return 0.0
    net = decimal_odds - 1.0
    return stake * (p * net - (1.0 - p))


# ---------------------------------------------------------------------------
# Utility — unit conversion
# ---------------------------------------------------------------------------


def kelly_to_units(fraction: float) -> float:
    """Convert a Kelly fraction to units (1 unit = 1% of bankroll).

    Examples::

        kelly_to_units(0.025) → 2.5
    """
    return fraction * 100.0
