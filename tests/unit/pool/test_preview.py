"""Tests for pool previews over a snapshot."""

import pytest

from planner.errors import InvalidTradeSize, ReadinessViolation, TokenNotFoundError
from planner.math.fixed_point import MIN_WEIGHT
from planner.pool.preview import (
    preview_all_in_given_pool_out,
    preview_all_out_given_pool_in,
    preview_in_given_out,
    preview_out_given_in,
    preview_pool_in_given_single_out,
    preview_pool_out_given_single_in,
    preview_single_in_given_pool_out,
    preview_single_out_given_pool_in,
    preview_spot_price,
)
from planner.pool.types import AccountSnapshot
from tests.helpers import AAVE, COMP, DAI, ONE, POOL, UNI, WALLET, make_asset, make_pool


@pytest.fixture
def ramping_pool():
    """UNI is ready, DAI is still ramping in with half its minimum balance."""
    return make_pool(
        [
            make_asset(UNI, 1000 * ONE, 5 * ONE, symbol="UNI"),
            make_asset(DAI, 50 * ONE, 0, ready=False, minimum_balance=100 * ONE, symbol="DAI"),
        ]
    )


class TestSwapPreviews:
    def test_spot_price_includes_fee(self, pool):
        assert preview_spot_price(pool, UNI, AAVE).value == 1_003_009_027_081_243_731

    def test_out_given_in(self, pool):
        preview = preview_out_given_in(pool, UNI, AAVE, 10 * ONE)

        assert preview.amount.address == AAVE
        assert preview.amount.symbol == "AAVE"
        assert 9 * ONE < preview.amount.amount < 10 * ONE
        assert preview.spot_price_after > preview_spot_price(pool, UNI, AAVE).value

    def test_in_given_out_reports_approval(self, pool):
        account = AccountSnapshot(WALLET, balances={UNI: 50 * ONE}, allowances={UNI: 5 * ONE})

        preview = preview_in_given_out(pool, UNI, AAVE, 10 * ONE, account=account)

        assert preview.amount.address == UNI
        assert preview.amount.amount > 10 * ONE
        assert preview.amount.balance == 50 * ONE
        assert preview.amount.remaining_approval_amount == preview.amount.amount - 5 * ONE
        assert preview.amount.approval_needed

    def test_swap_round_trip(self, pool):
        amount_out = preview_out_given_in(pool, UNI, AAVE, 10 * ONE).amount.amount
        amount_in = preview_in_given_out(pool, UNI, AAVE, amount_out).amount.amount
        assert abs(amount_in - 10 * ONE) <= ONE // 10**6

    def test_self_swap_rejected(self, pool):
        with pytest.raises(InvalidTradeSize):
            preview_out_given_in(pool, UNI, UNI, ONE)

    def test_unknown_token(self, pool):
        with pytest.raises(TokenNotFoundError):
            preview_out_given_in(pool, DAI, UNI, ONE)

    def test_swap_out_of_ramping_asset_refused(self, ramping_pool):
        with pytest.raises(ReadinessViolation):
            preview_out_given_in(ramping_pool, UNI, DAI, ONE)

    def test_swap_into_ramping_asset_allowed(self, ramping_pool):
        preview = preview_out_given_in(ramping_pool, DAI, UNI, ONE)
        assert preview.amount.amount > 0

    def test_oversized_swap_rejected(self, pool):
        with pytest.raises(InvalidTradeSize):
            preview_in_given_out(pool, UNI, AAVE, 500 * ONE)


class TestDepositPreviews:
    def test_single_in_given_pool_out(self, pool):
        preview = preview_single_in_given_pool_out(pool, COMP, ONE)

        assert preview.pool_amount.address == POOL
        assert preview.pool_amount.symbol == "IDX"
        assert preview.pool_amount.amount == ONE
        assert preview.token.address == COMP
        assert preview.token.amount > 30 * ONE

    def test_pool_out_given_single_in_round_trip(self, pool):
        amount_in = preview_single_in_given_pool_out(pool, COMP, ONE).token.amount
        minted = preview_pool_out_given_single_in(pool, COMP, amount_in).pool_amount.amount
        assert abs(minted - ONE) <= ONE // 10**6

    def test_single_in_with_account(self, pool):
        account = AccountSnapshot(WALLET, allowances={COMP: 1000 * ONE})
        preview = preview_pool_out_given_single_in(pool, COMP, 10 * ONE, account=account)
        assert preview.token.remaining_approval_amount == 0
        assert not preview.token.approval_needed

    def test_single_in_above_max_in_ratio_rejected(self, pool):
        with pytest.raises(InvalidTradeSize):
            preview_single_in_given_pool_out(pool, UNI, 20 * ONE)

    def test_all_in_given_pool_out(self, pool):
        amounts = preview_all_in_given_pool_out(pool, ONE)

        assert [a.address for a in amounts] == [UNI, AAVE, COMP]
        assert all(a.amount == 10 * ONE for a in amounts)
        assert amounts[0].display_amount == "10.00"

    def test_all_in_prices_ramping_asset_at_minimum(self, ramping_pool):
        amounts = preview_all_in_given_pool_out(ramping_pool, ONE)
        assert [a.amount for a in amounts] == [10 * ONE, ONE]

    def test_deposit_into_ramping_asset_uses_premium_weight(self, ramping_pool):
        """Depositing a ramping asset is allowed and priced with its used weight."""
        asset = ramping_pool.get_asset(DAI)
        assert asset.used_weight == MIN_WEIGHT + MIN_WEIGHT // 20
        preview = preview_pool_out_given_single_in(ramping_pool, DAI, ONE)
        assert preview.pool_amount.amount > 0


class TestWithdrawalPreviews:
    def test_single_out_round_trip(self, pool):
        amount_out = preview_single_out_given_pool_in(pool, UNI, ONE).token.amount
        burned = preview_pool_in_given_single_out(pool, UNI, amount_out).pool_amount.amount
        assert abs(burned - ONE) <= ONE // 10**6

    def test_single_out_above_max_out_ratio_rejected(self, pool):
        with pytest.raises(InvalidTradeSize):
            preview_single_out_given_pool_in(pool, UNI, 20 * ONE)

    def test_exit_into_ramping_asset_refused(self, ramping_pool):
        with pytest.raises(ReadinessViolation):
            preview_single_out_given_pool_in(ramping_pool, DAI, ONE)
        with pytest.raises(ReadinessViolation):
            preview_pool_in_given_single_out(ramping_pool, DAI, ONE)

    def test_all_out_given_pool_in(self):
        pool = make_pool(exit_fee=ONE // 100)
        amounts = preview_all_out_given_pool_in(pool, ONE)
        assert all(a.amount == 99 * ONE // 10 for a in amounts)

    def test_all_out_skips_zero_weight_asset(self):
        pool = make_pool(
            [
                make_asset(UNI, 1000 * ONE, 5 * ONE),
                make_asset(COMP, 500 * ONE, 0),
            ]
        )
        amounts = preview_all_out_given_pool_in(pool, ONE)
        assert [a.amount for a in amounts] == [10 * ONE, 0]
        assert amounts[1].display_amount == "0.00"
