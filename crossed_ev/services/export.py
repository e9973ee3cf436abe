"""
Display formatting and flat export rows.

Rounding happens here and only here.  Rows contain plain strings; quoting,
escaping and file handling belong to whoever writes them out.
"""

import math
from typing import List, Optional, Sequence, Tuple, Union

from crossed_ev.core.odds_math import (
    fair_decimal,
    implied_probability,
    normalize,
    to_american,
    to_decimal,
)

# Placeholder shown for a missing value
MISSING = "–"

MULTI_OUTCOME_HEADER = [
    "Outcome #", "Input", "Decimal", "Implied", "No-Vig Prob", "Fair Dec", "Fair Am",
]


def fmt_pct(x: Optional[float], digits: int = 2) -> str:
    """Format a probability as a percentage string, "–" when missing."""
    if x is None or not math.isfinite(x):
        return MISSING
    return f"{x * 100:.{digits}f}%"


def fmt_odds(decimal_odds: Optional[float]) -> Tuple[str, str]:
    """Return ``(decimal, american)`` display strings for a price."""
    if not decimal_odds or not math.isfinite(decimal_odds):
        return MISSING, MISSING
    return f"{decimal_odds:.3f}", to_american(decimal_odds)


def multi_outcome_rows(inputs: Sequence[Union[str, int, float, None]]) -> List[List[str]]:
    """
    Build the multi-outcome fair-price table, header first.

    Invalid inputs keep their row so numbering matches the input order;
    their computed columns are blank.
    """
    decimals = [to_decimal(raw) for raw in inputs]
    fair_probs = normalize(decimals)

    rows = [list(MULTI_OUTCOME_HEADER)]
    for i, (raw, dec, fair) in enumerate(zip(inputs, decimals, fair_probs), start=1):
        implied = implied_probability(dec)
        fair_dec, fair_am = fmt_odds(fair_decimal(fair))
        rows.append([
            f"#{i}",
            "" if raw is None else str(raw),
            f"{dec:.3f}" if dec else "",
            fmt_pct(implied) if implied else "",
            fmt_pct(fair) if fair else "",
            fair_dec,
            fair_am,
        ])
    return rows
