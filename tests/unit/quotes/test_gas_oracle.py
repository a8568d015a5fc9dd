"""Tests for gas price oracles."""

import asyncio

import httpx
import pytest

from planner.constants import GWEI
from planner.errors import GasPriceUnavailable
from planner.quotes.gas import FixedGasPriceOracle, HttpGasPriceOracle, convert_wei

URL = "https://gas.example/api"


def run_oracle(handler, unit="wei", chain_id=1):
    async def scenario():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            oracle = HttpGasPriceOracle(url=URL, chain_id=chain_id, client=client)
            return await oracle.current_price(unit)

    return asyncio.run(scenario())


class TestConvertWei:
    def test_units(self):
        assert convert_wei(25 * GWEI, "wei") == 25 * GWEI
        assert convert_wei(25 * GWEI + 1, "gwei") == 25

    def test_unknown_unit(self):
        with pytest.raises(ValueError):
            convert_wei(1, "ether")


class TestFixedGasPriceOracle:
    def test_returns_price(self):
        oracle = FixedGasPriceOracle(30 * GWEI)
        assert asyncio.run(oracle.current_price()) == 30 * GWEI
        assert asyncio.run(oracle.current_price("gwei")) == 30

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            FixedGasPriceOracle(-1)


class TestHttpGasPriceOracle:
    def test_reads_standard_price(self):
        def handler(request):
            assert str(request.url) == URL
            return httpx.Response(200, json={"fast": 40, "standard": 25, "slow": 10})

        assert run_oracle(handler) == 25 * GWEI
        assert run_oracle(handler, unit="gwei") == 25

    def test_fractional_gwei(self):
        def handler(request):
            return httpx.Response(200, json={"standard": "12.5"})

        assert run_oracle(handler) == 12_500_000_000

    def test_other_chains_assume_one_gwei(self):
        def handler(request):
            raise AssertionError("endpoint must not be queried off mainnet")

        assert run_oracle(handler, chain_id=42) == GWEI

    def test_http_error(self):
        def handler(request):
            return httpx.Response(503)

        with pytest.raises(GasPriceUnavailable):
            run_oracle(handler)

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GasPriceUnavailable):
            run_oracle(handler)

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"not json")

        with pytest.raises(GasPriceUnavailable):
            run_oracle(handler)

    def test_missing_standard_field(self):
        def handler(request):
            return httpx.Response(200, json={"fast": 40})

        with pytest.raises(GasPriceUnavailable):
            run_oracle(handler)

    def test_unparseable_price(self):
        def handler(request):
            return httpx.Response(200, json={"standard": "soon"})

        with pytest.raises(GasPriceUnavailable):
            run_oracle(handler)
