"""
Fixed-payout slip engine (Flex / Power).

Prices multi-leg slips whose payout depends only on how many legs win,
via a payout table indexed by hit count.  Legs are independent but not
identically distributed, so the hit count follows a Poisson-binomial
distribution, computed exactly by iterated convolution.

Leg tokens are parsed leniently: ``"0.55"``, ``"55%"`` and ``"-120"`` are
all valid.  Tokens that cannot be read are dropped, since a half-typed slip
is a normal state while editing.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from crossed_ev.core.odds_math import implied_probability, parse_number, to_decimal

logger = logging.getLogger(__name__)

# Leg separators: commas and any whitespace
_TOKEN_SPLIT_RE = re.compile(r"[,\s]+")

# OCR and copy/paste dashes
_DASH_TRANSLATION = str.maketrans({"–": "-", "−": "-"})

# Bisection settings for the break-even leg probability
_BREAK_EVEN_TOL = 1e-10
_BREAK_EVEN_MAX_ITER = 200


class LegTokenKind(str, Enum):
    """How a leg token should be interpreted."""

    EMPTY = "empty"
    PERCENT = "percent"
    PROBABILITY = "probability"
    ODDS = "odds"


# ---------------------------------------------------------------------------
# Leg parsing
# ---------------------------------------------------------------------------

def classify_leg_token(token: str) -> LegTokenKind:
    """Decide which interpretation applies to *token*."""
    t = token.strip()
    if not t:
        return LegTokenKind.EMPTY
    if t.endswith("%"):
        return LegTokenKind.PERCENT
    value = parse_number(t)
    if value is not None and 0.0 < value < 1.0:
        return LegTokenKind.PROBABILITY
    return LegTokenKind.ODDS


def _in_open_unit(p: Optional[float]) -> Optional[float]:
    if p is None or not np.isfinite(p) or not (0.0 < p < 1.0):
        return None
    return float(p)


def parse_leg_probability(token: str) -> Optional[float]:
    """
    Convert one leg token into a win probability in (0, 1).

    Returns None for anything that is not a percentage, a raw probability,
    or a price whose implied probability is in range.
    """
    t = token.translate(_DASH_TRANSLATION).strip()
    kind = classify_leg_token(t)

    if kind is LegTokenKind.EMPTY:
        return None
    if kind is LegTokenKind.PERCENT:
        pct = parse_number(t[:-1])
        return _in_open_unit(pct / 100.0) if pct is not None else None
    if kind is LegTokenKind.PROBABILITY:
        return _in_open_unit(parse_number(t))
    return _in_open_unit(implied_probability(to_decimal(t)))


def split_leg_tokens(text: str) -> List[str]:
    """Split free text into leg tokens on commas and whitespace."""
    return [t for t in _TOKEN_SPLIT_RE.split(text.translate(_DASH_TRANSLATION)) if t]


def parse_legs(legs: Union[str, Iterable[str]]) -> List[float]:
    """
    Parse a slip into leg probabilities, dropping unreadable tokens.

    Args:
        legs: Free text (``"-119, -110, 55%"``) or an iterable of tokens.
    """
    tokens = split_leg_tokens(legs) if isinstance(legs, str) else [str(t) for t in legs]
    probs = []
    for token in tokens:
        p = parse_leg_probability(token)
        if p is None:
            logger.debug("Dropping unparseable leg token %r", token)
            continue
        probs.append(p)
    return probs


# ---------------------------------------------------------------------------
# Distribution and EV
# ---------------------------------------------------------------------------

def hits_distribution(probs: Sequence[float]) -> List[float]:
    """
    Exact distribution of the number of winning legs.

    Starting from ``[1.0]`` (no legs, zero hits), each leg with win
    probability p maps the distribution to::

        next[k]   += dist[k] * (1 - p)     # leg misses
        next[k+1] += dist[k] * p           # leg hits

    which is a convolution with ``[1 - p, p]``.  O(N²) time, O(N) space.

    Args:
        probs: Win probability of each leg, each in (0, 1).

    Returns:
        List of length ``len(probs) + 1``; entry k is P(exactly k hits).
    """
    dist = np.array([1.0])
    for p in probs:
        dist = np.convolve(dist, np.array([1.0 - p, p]))
    return dist.tolist()


def ev_multiple(probs: Sequence[float], payout_table: Sequence[float]) -> float:
    """
    Expected payout multiple per unit staked.

    ``Σ_k P(k hits) · table[k]``; an index missing from either side counts
    as 0.  1.0 is break-even.
    """
    dist = hits_distribution(probs)
    n = max(len(dist), len(payout_table))
    padded_dist = np.zeros(n)
    padded_dist[:len(dist)] = dist
    padded_table = np.zeros(n)
    padded_table[:len(payout_table)] = payout_table
    return float(np.dot(padded_dist, padded_table))


def roi(ev: float) -> float:
    """Return on investment for an expected payout multiple."""
    return ev - 1.0


def resize_payout_table(table: Sequence[float], leg_count: int) -> List[float]:
    """
    Truncate or zero-pad *table* to ``leg_count + 1`` entries.

    Raises:
        ValueError: If leg_count is negative or any multiple is negative.
    """
    if leg_count < 0:
        raise ValueError(f"leg_count must be >= 0, got {leg_count}")
    out = [float(m) for m in table[:leg_count + 1]]
    if any(m < 0 or not np.isfinite(m) for m in out):
        raise ValueError(f"Payout multiples must be finite and non-negative: {out}")
    out.extend([0.0] * (leg_count + 1 - len(out)))
    return out


def break_even_leg_probability(payout_table: Sequence[float], leg_count: int) -> Optional[float]:
    """
    Common per-leg win probability at which the slip breaks even.

    EV is non-decreasing in a common leg probability only when the table is
    non-decreasing in k, which is how books build them.  Returns None when
    even a certain sweep does not return the stake.
    """
    table = resize_payout_table(payout_table, leg_count)
    if ev_multiple([1.0] * leg_count, table) < 1.0:
        return None
    if ev_multiple([0.0] * leg_count, table) >= 1.0:
        return 0.0

    lo, hi = 0.0, 1.0
    for _ in range(_BREAK_EVEN_MAX_ITER):
        mid = (lo + hi) * 0.5
        if ev_multiple([mid] * leg_count, table) < 1.0:
            lo = mid
        else:
            hi = mid
        if hi - lo < _BREAK_EVEN_TOL:
            break
    return (lo + hi) * 0.5


@dataclass
class FlexEvaluation:
    """Full pricing of one fixed-payout slip."""

    leg_probs: List[float]
    payout_table: List[float]
    distribution: List[float] = field(default_factory=list)
    ev_multiple: float = 0.0
    roi: float = -1.0
    p_profit: float = 0.0
    break_even_leg_prob: Optional[float] = None

    @property
    def num_legs(self) -> int:
        return len(self.leg_probs)


def evaluate_slip(probs: Sequence[float], payout_table: Sequence[float]) -> FlexEvaluation:
    """
    Price a slip: distribution, EV multiple, ROI and profit probability.

    The payout table is synced to ``len(probs) + 1`` entries first.
    """
    legs = list(probs)
    table = resize_payout_table(payout_table, len(legs))
    dist = hits_distribution(legs)
    ev = ev_multiple(legs, table)
    p_profit = sum(pk for pk, mult in zip(dist, table) if mult > 1.0)

    evaluation = FlexEvaluation(
        leg_probs=legs,
        payout_table=table,
        distribution=dist,
        ev_multiple=ev,
        roi=roi(ev),
        p_profit=p_profit,
        break_even_leg_prob=break_even_leg_probability(table, len(legs)) if legs else None,
    )
    logger.debug(
        "Slip priced: %d legs, EV multiple %.4f, ROI %.2f%%",
        evaluation.num_legs, ev, evaluation.roi * 100,
    )
    return evaluation
