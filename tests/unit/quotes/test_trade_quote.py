"""Tests for TradeQuote slippage bounds."""

from decimal import Decimal

from planner.quotes.base import GasPriceOracle, QuoteSource, TradeQuote
from planner.quotes.gas import FixedGasPriceOracle
from tests.helpers import DAI, USDC, WETH, FakeQuoteSource

SLIPPAGE = Decimal("0.02")


def swap(amount_in: int, amount_out: int) -> TradeQuote:
    return TradeQuote(DAI, WETH, amount_in, amount_out, (DAI, WETH))


class TestSlippageBounds:
    def test_minimum_amount_out(self):
        """102 / 1.02 = 100."""
        assert swap(1, 102).minimum_amount_out(SLIPPAGE) == 100

    def test_minimum_amount_out_rounds_down(self):
        assert swap(1, 100).minimum_amount_out(SLIPPAGE) == 98

    def test_maximum_amount_in(self):
        assert swap(100, 1).maximum_amount_in(SLIPPAGE) == 102

    def test_maximum_amount_in_rounds_down(self):
        assert swap(99, 1).maximum_amount_in(SLIPPAGE) == 100

    def test_zero_slippage(self):
        quote = swap(100, 200)
        assert quote.maximum_amount_in(Decimal(0)) == 100
        assert quote.minimum_amount_out(Decimal(0)) == 200

    def test_identity_exempt_from_slippage(self):
        quote = TradeQuote.identity(DAI, 1000)
        assert quote.is_identity
        assert quote.hop_count == 0
        assert quote.minimum_amount_out(SLIPPAGE) == 1000
        assert quote.maximum_amount_in(SLIPPAGE) == 1000


class TestQuoteShape:
    def test_hop_count(self):
        quote = TradeQuote(DAI, USDC, 1, 1, (DAI, WETH, USDC))
        assert quote.hop_count == 2
        assert not quote.is_identity

    def test_identity_normalizes_address(self):
        quote = TradeQuote.identity(DAI.upper().replace("0X", "0x"), 5)
        assert quote.token_in == quote.token_out == DAI


class TestProtocols:
    def test_fakes_satisfy_protocols(self):
        assert isinstance(FakeQuoteSource(), QuoteSource)
        assert isinstance(FixedGasPriceOracle(1), GasPriceOracle)
