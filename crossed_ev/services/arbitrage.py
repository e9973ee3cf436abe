"""
Cross-book arbitrage ("crossed market") scanner.

Given competing quotes for every side of one market, picks the best price
per side and checks whether the combined implied probability is below
100%.  When it is, staking each side in proportion to its implied
probability returns the same amount whatever the result, and that amount
exceeds the total staked.

Works for two-way markets (over/under, moneyline) and multi-way markets
(three-way soccer, futures) alike.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Union

from crossed_ev.core.odds_math import implied_probability, to_american, to_decimal

logger = logging.getLogger(__name__)

# Stake spread across all legs when the caller does not pick one
DEFAULT_TOTAL_STAKE = 100.0


class ArbStatus(str, Enum):
    """Outcome of a scan."""

    CROSSED = "crossed"
    NO_ARBITRAGE = "no_arbitrage"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class BookQuote:
    """A named offer on one side of a market."""

    book_label: str
    odds: Union[str, int, float, None]


@dataclass
class BestPrice:
    """Best available price on one side."""

    side_index: int
    book_label: str
    raw_odds: Union[str, int, float, None]
    decimal: float
    implied: float

    @property
    def american(self) -> str:
        return to_american(self.decimal)


@dataclass
class ArbitrageResult:
    """Result of scanning one market."""

    status: ArbStatus
    best_prices: List[Optional[BestPrice]] = field(default_factory=list)
    implied_sum: Optional[float] = None
    edge: Optional[float] = None
    overround: Optional[float] = None
    total_stake: float = DEFAULT_TOTAL_STAKE
    stakes: List[float] = field(default_factory=list)
    guaranteed_return: Optional[float] = None

    @property
    def is_crossed(self) -> bool:
        return self.status is ArbStatus.CROSSED

    @property
    def can_evaluate(self) -> bool:
        return self.status is not ArbStatus.INSUFFICIENT_DATA


def best_price(quotes: Sequence[BookQuote], side_index: int = 0) -> Optional[BestPrice]:
    """
    Select the highest decimal price among *quotes*.

    Quotes that fail to parse are discarded.  Ties keep the first quote
    seen.  Returns None when no quote on the side is usable.
    """
    best: Optional[BestPrice] = None
    for quote in quotes:
        decimal = to_decimal(quote.odds)
        implied = implied_probability(decimal)
        if decimal is None or implied is None:
            logger.debug("Discarding unparseable quote %r from %r", quote.odds, quote.book_label)
            continue
        if best is None or decimal > best.decimal:
            best = BestPrice(
                side_index=side_index,
                book_label=quote.book_label,
                raw_odds=quote.odds,
                decimal=decimal,
                implied=implied,
            )
    return best


class ArbitrageScanner:
    """
    Scanner for crossed markets across bookmakers.

    Arbitrage exists when the best prices on all sides sum to less than
    100% implied probability.

    Example:
        Book A: Over  @ 2.10 (implied 47.6%)
        Book B: Under @ 2.20 (implied 45.5%)
        Total implied: 93.1% < 100% = 6.9% edge

    Usage:
        >>> scanner = ArbitrageScanner(total_stake=100.0)
        >>> result = scanner.scan([[BookQuote("A", "2.10")], [BookQuote("B", "+120")]])
        >>> result.is_crossed
        True
    """

    def __init__(self, total_stake: float = DEFAULT_TOTAL_STAKE):
        """
        Initialize the scanner.

        Args:
            total_stake: Amount split across the legs when computing stakes.
        """
        if total_stake <= 0:
            raise ValueError(f"total_stake must be > 0, got {total_stake!r}")
        self.total_stake = total_stake

    def scan(self, sides: Sequence[Sequence[BookQuote]]) -> ArbitrageResult:
        """
        Scan one market.

        Args:
            sides: One list of quotes per mutually exclusive side, e.g.
                ``[over_quotes, under_quotes]``.

        Returns:
            ArbitrageResult.  INSUFFICIENT_DATA when there are fewer than two
            sides or any side has no usable quote; otherwise CROSSED or
            NO_ARBITRAGE with the implied sum reported either way.
        """
        best_prices = [best_price(quotes, side_index=i) for i, quotes in enumerate(sides)]

        if len(best_prices) < 2 or any(bp is None for bp in best_prices):
            logger.debug(
                "Arbitrage scan: insufficient data (%d sides, %d priced)",
                len(best_prices), sum(bp is not None for bp in best_prices),
            )
            return ArbitrageResult(
                status=ArbStatus.INSUFFICIENT_DATA,
                best_prices=best_prices,
                total_stake=self.total_stake,
            )

        implied_sum = sum(bp.implied for bp in best_prices)

        # Proportional staking equalises the return on every leg:
        # stake_i * decimal_i == total_stake / implied_sum for all i
        stakes = [self.total_stake * bp.implied / implied_sum for bp in best_prices]
        payout = self.total_stake / implied_sum

        if implied_sum < 1.0:
            status = ArbStatus.CROSSED
            edge = 1.0 - implied_sum
            logger.info(
                "Crossed market: %s (implied sum %.4f, edge %.2f%%)",
                " / ".join(f"{bp.book_label} {bp.decimal:.3f}" for bp in best_prices),
                implied_sum, edge * 100,
            )
        else:
            status = ArbStatus.NO_ARBITRAGE
            edge = None
            logger.debug("No arbitrage: implied sum %.4f", implied_sum)

        return ArbitrageResult(
            status=status,
            best_prices=best_prices,
            implied_sum=implied_sum,
            edge=edge,
            overround=implied_sum - 1.0,
            total_stake=self.total_stake,
            stakes=stakes,
            guaranteed_return=payout - self.total_stake,
        )


def scan_two_way(
    side_a: Sequence[BookQuote],
    side_b: Sequence[BookQuote],
    total_stake: float = DEFAULT_TOTAL_STAKE,
) -> ArbitrageResult:
    """Convenience wrapper for a two-sided market."""
    return ArbitrageScanner(total_stake=total_stake).scan([side_a, side_b])
