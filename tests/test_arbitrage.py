"""
Tests for the crossed-market scanner
Run with: pytest tests/test_arbitrage.py -v
"""

import pytest
from crossed_ev.services.arbitrage import (
    ArbStatus,
    ArbitrageScanner,
    BookQuote,
    best_price,
    scan_two_way,
)


class TestBestPrice:
    """Best price selection per side"""

    def test_picks_highest_decimal(self):
        """Best price is the highest decimal."""
        quotes = [BookQuote("A", "-110"), BookQuote("B", "+105"), BookQuote("C", "1.95")]
        bp = best_price(quotes)
        assert bp.book_label == "B"
        assert bp.decimal == pytest.approx(2.05)
        assert bp.implied == pytest.approx(1 / 2.05)
        assert bp.american == "+105"

    def test_mixed_formats_compare_on_decimal(self):
        """American and decimal quotes compare on decimal value."""
        quotes = [BookQuote("A", "2.10"), BookQuote("B", "+105")]
        assert best_price(quotes).book_label == "A"

    def test_tie_keeps_first_seen(self):
        """Equal prices keep the first book seen."""
        quotes = [BookQuote("First", "+100"), BookQuote("Second", "2.0")]
        assert best_price(quotes).book_label == "First"

    def test_discards_unparseable(self):
        """Unparseable quotes are skipped."""
        quotes = [BookQuote("A", "junk"), BookQuote("B", ""), BookQuote("C", "0.95"), BookQuote("D", "-120")]
        bp = best_price(quotes, side_index=1)
        assert bp.book_label == "D"
        assert bp.side_index == 1

    def test_no_usable_quotes(self):
        """No usable quote gives no best price."""
        assert best_price([BookQuote("A", None), BookQuote("B", "0")]) is None
        assert best_price([]) is None


class TestScan:
    """Crossed / no-arb / insufficient-data determination"""

    def test_crossed_market(self):
        """Test the 2.10 / 2.20 crossed market."""
        result = scan_two_way([BookQuote("A", "2.10")], [BookQuote("B", "2.20")])

        assert result.status is ArbStatus.CROSSED
        assert result.is_crossed
        assert result.implied_sum == pytest.approx(1 / 2.1 + 1 / 2.2)
        assert result.implied_sum == pytest.approx(0.9307, abs=1e-4)
        assert result.edge == pytest.approx(0.0693, abs=1e-4)
        assert result.overround == pytest.approx(result.implied_sum - 1)

    def test_no_arbitrage_still_reports_sum(self):
        """Implied sum is reported even without arbitrage."""
        result = scan_two_way([BookQuote("A", "-110")], [BookQuote("B", "-110")])

        assert result.status is ArbStatus.NO_ARBITRAGE
        assert not result.is_crossed
        assert result.can_evaluate
        assert result.edge is None
        assert result.implied_sum == pytest.approx(2 * 110 / 210)

    def test_best_prices_selected_across_books(self):
        """Best price per side is chosen across books."""
        side_a = [BookQuote("A1", "-115"), BookQuote("A2", "+105")]
        side_b = [BookQuote("B1", "-102"), BookQuote("B2", "-110")]
        result = scan_two_way(side_a, side_b)

        assert [bp.book_label for bp in result.best_prices] == ["A2", "B1"]
        expected_sum = 1 / 2.05 + 1 / (1 + 100 / 102)
        assert result.implied_sum == pytest.approx(expected_sum)
        assert result.status is ArbStatus.CROSSED

    def test_empty_side_is_insufficient(self):
        """Empty side gives insufficient data."""
        result = scan_two_way([BookQuote("A", "2.5")], [])

        assert result.status is ArbStatus.INSUFFICIENT_DATA
        assert not result.can_evaluate
        assert result.implied_sum is None
        assert result.edge is None
        assert result.best_prices[1] is None

    def test_unparseable_side_is_insufficient(self):
        """Side with only bad quotes gives insufficient data."""
        result = scan_two_way([BookQuote("A", "junk")], [BookQuote("B", "2.5")])
        assert result.status is ArbStatus.INSUFFICIENT_DATA

    def test_single_side_is_insufficient(self):
        """One side alone cannot be evaluated."""
        result = ArbitrageScanner().scan([[BookQuote("A", "5.0")]])
        assert result.status is ArbStatus.INSUFFICIENT_DATA

    def test_three_way_market(self):
        """Three-way markets are scanned the same way."""
        sides = [
            [BookQuote("A", "2.9")],
            [BookQuote("B", "3.6"), BookQuote("C", "3.4")],
            [BookQuote("D", "3.5")],
        ]
        result = ArbitrageScanner().scan(sides)

        expected = 1 / 2.9 + 1 / 3.6 + 1 / 3.5
        assert result.implied_sum == pytest.approx(expected)
        assert result.status is ArbStatus.CROSSED
        assert result.best_prices[1].book_label == "B"


class TestStakes:
    """Proportional staking equalises every leg's return"""

    def test_stakes_sum_to_total(self):
        """Proportional stakes add up to the total."""
        result = ArbitrageScanner(total_stake=500.0).scan(
            [[BookQuote("A", "2.10")], [BookQuote("B", "2.20")]]
        )
        assert sum(result.stakes) == pytest.approx(500.0)

    def test_equal_return_on_each_leg(self):
        """Every leg returns the same amount."""
        result = scan_two_way([BookQuote("A", "2.10")], [BookQuote("B", "2.20")])
        returns = [s * bp.decimal for s, bp in zip(result.stakes, result.best_prices)]
        assert returns[0] == pytest.approx(returns[1])
        assert result.guaranteed_return == pytest.approx(returns[0] - 100.0)
        assert result.guaranteed_return > 0

    def test_guaranteed_return_negative_without_arb(self):
        """Guaranteed return is a loss when there is no arbitrage."""
        result = scan_two_way([BookQuote("A", "-110")], [BookQuote("B", "-110")])
        assert result.guaranteed_return < 0

    def test_no_stakes_when_insufficient(self):
        """No stakes are computed on insufficient data."""
        result = scan_two_way([], [BookQuote("B", "2.0")])
        assert result.stakes == []
        assert result.guaranteed_return is None

    def test_invalid_total_stake(self):
        """Non-positive total stake is rejected."""
        with pytest.raises(ValueError):
            ArbitrageScanner(total_stake=0)
