"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services or routes.

The two pillars exposed are:

1. **Odds conversion** — American ↔ decimal, with a strict parser
   (:func:`parse_odds`) and a null-propagating one (:func:`to_decimal`).
2. **Vig removal** — proportional normalisation across any number of
   mutually exclusive outcomes.

Design decisions
----------------
* Inputs arrive as free text (form fields, slip-extractor output), so the
  parser accepts ``str``, ``int``, ``float`` or ``None``.  It is a closed
  two-format system: a signed integer is American, anything else that
  parses as a finite number is decimal.
* "No price" is represented by ``None`` and threaded through every
  function.  Nothing here substitutes zero for a missing price except
  :func:`normalize`, whose zero-for-missing behaviour is documented there.
* Proportional normalisation (divide each implied probability by the
  total) is used rather than Shin or power methods: it assumes the margin
  is spread uniformly across outcomes, which is the standard "no-vig"
  convention for the crossed-market and prop calculators.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional, Sequence, Union

OddsInput = Union[str, int, float, None]

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American notation: optional sign followed by digits only.
_AMERICAN_RE: Final = re.compile(r"^\s*[+-]?\d+\s*$")

#: Plain decimal notation, optionally signed, with an optional exponent.
_DECIMAL_RE: Final = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

#: Typographic dashes produced by copy/paste and OCR.  Treated as ASCII minus.
_DASH_TRANSLATION: Final = str.maketrans({"−": "-", "–": "-"})

#: Display marker for a blank odds field.
UNKNOWN_FORMAT_LABEL: Final[str] = "—"


class OddsFormat(str, Enum):
    """Notation inferred from a raw odds value."""

    AMERICAN = "American"
    DECIMAL = "Decimal"
    UNRECOGNIZED = UNKNOWN_FORMAT_LABEL


class ParseErrorReason(str, Enum):
    """Why a raw odds value could not be turned into a decimal price."""

    EMPTY = "empty"
    INVALID_ZERO = "invalid_zero"
    NOT_NUMERIC = "not_numeric"
    TOO_LOW = "too_low"


class OddsParseError(ValueError):
    """Raised by :func:`parse_odds` when the input is not a usable price."""

    def __init__(self, reason: ParseErrorReason, raw: OddsInput = None):
        self.reason = reason
        self.raw = raw
        super().__init__(f"Cannot parse odds {raw!r}: {reason.value}")


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def _clean(value: OddsInput) -> str:
    if value is None:
        return ""
    return str(value).translate(_DASH_TRANSLATION).strip()


def is_american(value: OddsInput) -> bool:
    """Return True when *value* is a signed integer (moneyline notation)."""
    return bool(_AMERICAN_RE.match(_clean(value)))


def parse_number(text: str) -> Optional[float]:
    """Strict finite float parse of plain numeric text, or ``None``.

    ``float()`` alone would also accept ``"2_5"``, ``"inf"`` and ``"nan"``.
    """
    t = text.strip()
    if not _DECIMAL_RE.match(t):
        return None
    value = float(t)
    return value if math.isfinite(value) else None


def parse_odds(value: OddsInput) -> float:
    """Parse a textual or numeric odds quote into decimal odds.

    Examples::

        parse_odds("-110")  → 1.9091   (1 + 100/110)
        parse_odds("+120")  → 2.2000
        parse_odds("2.45")  → 2.4500
        parse_odds(150)     → 2.5000   (an int is American notation)

    Args:
        value: American integer notation (``"-110"``, ``"+150"``, ``150``)
            or a decimal price (``"1.91"``, ``2.5``).  Surrounding
            whitespace is ignored and typographic minus signs are accepted.

    Returns:
        Decimal odds strictly greater than 1.0.

    Raises:
        OddsParseError: With ``reason`` set to ``EMPTY`` (blank/None),
            ``INVALID_ZERO`` (American ``0``), ``NOT_NUMERIC`` (not a finite
            number) or ``TOO_LOW`` (decimal price ≤ 1).
    """
    raw = _clean(value)
    if not raw:
        raise OddsParseError(ParseErrorReason.EMPTY, value)

    if _AMERICAN_RE.match(raw):
        american = int(raw)
        if american == 0:
            raise OddsParseError(ParseErrorReason.INVALID_ZERO, value)
        if american > 0:
            return 1.0 + american / 100.0
        # Negative: risk |american| to win 100
        return 1.0 + 100.0 / abs(american)

    decimal_odds = parse_number(raw)
    if decimal_odds is None:
        raise OddsParseError(ParseErrorReason.NOT_NUMERIC, value)
    if decimal_odds <= 1.0:
        raise OddsParseError(ParseErrorReason.TOO_LOW, value)
    return decimal_odds


def to_decimal(value: OddsInput) -> Optional[float]:
    """Null-propagating :func:`parse_odds`: ``None`` instead of raising."""
    try:
        return parse_odds(value)
    except OddsParseError:
        return None


def _round_half_up(x: float) -> int:
    # Halves go up (2.125 -> +113); round() would go to even
    return math.floor(x + 0.5)


def to_american(decimal_odds: Optional[float]) -> str:
    """Format decimal odds as an American string for display.

    Values ≥ 2.0 render as ``"+N"``; values in ``(1, 2)`` as ``"-N"``.
    Anything else (``None``, non-finite, ≤ 1) renders as ``""``; this is a
    display helper and never raises.

    Examples::

        to_american(2.2)    → "+120"
        to_american(1.9091) → "-110"
        to_american(1.0)    → ""
    """
    if decimal_odds is None or not math.isfinite(decimal_odds) or decimal_odds <= 1.0:
        return ""
    profit = decimal_odds - 1.0
    if decimal_odds >= 2.0:
        return f"+{_round_half_up(profit * 100)}"
    return f"-{_round_half_up(100.0 / profit)}"


def format_label(value: OddsInput) -> str:
    """Classify a raw odds value as ``"American"``, ``"Decimal"`` or ``"—"``."""
    if not _clean(value):
        return OddsFormat.UNRECOGNIZED.value
    return OddsFormat.AMERICAN.value if is_american(value) else OddsFormat.DECIMAL.value


@dataclass(frozen=True)
class OddsQuote:
    """A raw odds value together with its inferred format and parse outcome."""

    raw: OddsInput
    format: OddsFormat
    decimal: Optional[float] = None
    error: Optional[ParseErrorReason] = None

    @classmethod
    def from_input(cls, raw: OddsInput) -> "OddsQuote":
        fmt = OddsFormat(format_label(raw))
        try:
            return cls(raw=raw, format=fmt, decimal=parse_odds(raw))
        except OddsParseError as exc:
            return cls(raw=raw, format=fmt, error=exc.reason)

    @property
    def is_valid(self) -> bool:
        return self.decimal is not None

    @property
    def implied(self) -> Optional[float]:
        return implied_probability(self.decimal)

    @property
    def american(self) -> str:
        return to_american(self.decimal)


# ---------------------------------------------------------------------------
# Implied probability and vig removal
# ---------------------------------------------------------------------------


def implied_probability(decimal_odds: Optional[float]) -> Optional[float]:
    """Raw implied probability ``1 / decimal`` (vig-inclusive).

    Returns ``None`` for a missing price or one that is not strictly above
    1.0, so callers must handle absence explicitly.

    Examples::

        implied_probability(2.0)    → 0.5
        implied_probability(1.9091) → 0.5238
        implied_probability(None)   → None
    """
    if decimal_odds is None or not math.isfinite(decimal_odds) or decimal_odds <= 1.0:
        return None
    return 1.0 / decimal_odds


def _implied_total(outcomes: Sequence[Optional[float]]) -> tuple[list[Optional[float]], float]:
    implied = [implied_probability(d) for d in outcomes]
    return implied, sum(p for p in implied if p is not None)


def normalize(outcomes: Sequence[Optional[float]]) -> list[Optional[float]]:
    """Remove the bookmaker margin by proportional normalisation.

    Each outcome's implied probability is divided by the total implied
    probability of the market, so the result sums to exactly 1.0::

        fair_i  =  ω_i / Σ ω_j

    Missing or invalid prices are counted as probability 0: they add
    nothing to the total and come back as ``0.0``, not ``None``.  Only
    when *no* outcome is valid does every position come back as ``None``.

    Args:
        outcomes: Decimal odds for every mutually exclusive result of one
            market, in display order.  ``None`` marks a missing price.

    Returns:
        Fair probabilities, same length and order as *outcomes*.

    Examples::

        normalize([1.9091, 1.9091]) → [0.5, 0.5]
        normalize([2.0, None])      → [1.0, 0.0]
        normalize([None, None])     → [None, None]
    """
    implied, total = _implied_total(outcomes)
    if total <= 0.0:
        return [None] * len(implied)
    return [(p or 0.0) / total for p in implied]


def overround(outcomes: Sequence[Optional[float]]) -> Optional[float]:
    """Bookmaker margin ``Σ implied − 1``; ``None`` when no price is valid.

    A negative value means the prices are crossed (sum below 100%).
    """
    _, total = _implied_total(outcomes)
    if total <= 0.0:
        return None
    return total - 1.0


def fair_decimal(probability: Optional[float]) -> Optional[float]:
    """No-vig decimal price ``1 / p`` for a fair probability."""
    if probability is None or probability <= 0.0:
        return None
    return 1.0 / probability
