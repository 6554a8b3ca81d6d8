"""Tests for the liquidity bootstrapper with mocked contracts"""

import logging
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from token_launch.core.exceptions import InsufficientBalanceError, PoolError
from token_launch.protocols.uniswap_v3.math import Q96, single_sided_mint_amount
from token_launch.protocols.uniswap_v3.operations.bootstrap import LiquidityBootstrapper
from token_launch.protocols.uniswap_v3.types import LaunchConfig

MODULE = "token_launch.protocols.uniswap_v3.operations.bootstrap"

WETH = "0x4200000000000000000000000000000000000006"
HOLMES = "0xA7de8462a852eBA2C9b4A3464C8fC577cb7090b8"
POOL = "0x1111111111111111111111111111111111111111"
NFPM_ADDRESS = "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1"
DEPLOYER = "0x2222222222222222222222222222222222222222"

SUPPLY = 100_000_000 * 10 ** 18


class FakeToken:
    """ERC20 stand-in keyed by address"""

    SYMBOLS = {WETH: "WETH", HOLMES: "HOLMES"}

    def __init__(self, manager, address, gas_manager=None):
        self.address = address
        self.symbol = self.SYMBOLS[address]
        self.decimals = 18
        self.balance = SUPPLY
        self.approve = MagicMock(return_value=_receipt("0xa11"))

    def to_wei(self, amount):
        return int(Decimal(str(amount)) * 10 ** self.decimals)

    def from_wei(self, amount):
        return amount / 10 ** self.decimals

    def balance_of(self, address=None):
        return self.balance


def _receipt(tx_hash, gas_used=100000):
    receipt = MagicMock()
    receipt.transactionHash.hex.return_value = tx_hash
    receipt.gasUsed = gas_used
    return receipt


@pytest.fixture
def manager():
    manager = MagicMock()
    manager.chain_id = 8453
    manager.address = DEPLOYER
    manager.checksum.side_effect = lambda address: address
    manager.config.common_tokens = {"WETH": WETH, "HOLMES": HOLMES}
    manager.config.get_token_address.side_effect = lambda s: {"WETH": WETH, "HOLMES": HOLMES}.get(s.upper(), s)
    return manager


@pytest.fixture
def launch():
    return LaunchConfig(token="HOLMES", price_lower="0.0001", price_upper="0.1", amount="100000000")


@pytest.fixture
def contracts():
    """Patch contract wrappers; the pool does not exist yet"""
    tokens = {}

    def make_token(manager, address, gas_manager=None):
        if address not in tokens:
            tokens[address] = FakeToken(manager, address, gas_manager)
        return tokens[address]

    with patch(f"{MODULE}.ERC20", side_effect=make_token), \
            patch(f"{MODULE}.Factory") as factory_cls, \
            patch(f"{MODULE}.Pool") as pool_cls, \
            patch(f"{MODULE}.NFPM") as nfpm_cls:
        factory = factory_cls.return_value
        factory.get_pool.side_effect = [None, POOL]

        nfpm = nfpm_cls.return_value
        nfpm.address = NFPM_ADDRESS
        nfpm.create_and_initialize_pool_if_necessary.return_value = _receipt("0xc0de")
        nfpm.mint.return_value = {
            "receipt": _receipt("0x3117", gas_used=450000),
            "token_id": 42,
            "liquidity": 123456789,
            "amount0": 0,
            "amount1": SUPPLY - 1,
        }

        yield {
            "tokens": tokens,
            "factory": factory,
            "factory_cls": factory_cls,
            "pool_cls": pool_cls,
            "nfpm": nfpm,
        }


class TestPlan:
    """Tests for LiquidityBootstrapper.plan."""

    def test_setup(self, manager, launch, contracts):
        bootstrapper = LiquidityBootstrapper(manager=manager, launch=launch)
        assert bootstrapper.tick_spacing == 200
        contracts["factory_cls"].assert_called_once_with(manager, "0x33128a8fC17869897dcE68Ed026d694621f6FDfD")

    def test_new_pool(self, manager, launch, contracts):
        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()

        assert plan["token0"] == WETH
        assert plan["token1"] == HOLMES
        assert plan["token_is_token0"] is False
        assert plan["pool_exists"] is False
        assert plan["current_tick"] == 92108
        assert plan["sqrt_price_x96"] == 100 * Q96
        assert (plan["derived_tick_lower"], plan["derived_tick_upper"]) == (23000, 92200)
        assert (plan["tick_lower"], plan["tick_upper"]) == (23000, 92000)
        assert plan["single_sided"] is True
        assert plan["amount0_desired"] == 0
        assert plan["amount1_desired"] == SUPPLY
        assert plan["amount1_min"] == 0
        assert plan["pool_price"] == pytest.approx(10000)

    def test_plan_sends_nothing(self, manager, launch, contracts):
        LiquidityBootstrapper(manager=manager, launch=launch).plan()
        contracts["nfpm"].create_and_initialize_pool_if_necessary.assert_not_called()
        contracts["nfpm"].mint.assert_not_called()

    def test_slippage_measured_from_pool_amount(self, manager, contracts):
        launch = LaunchConfig(token="HOLMES", price_lower="0.0001", price_upper="0.1",
                              amount="1000", slippage_bps=50)
        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        taken = single_sided_mint_amount(23000, 92000, 1000 * 10 ** 18, False)
        assert plan["amount1_desired"] == 1000 * 10 ** 18
        assert plan["amount1_min"] == taken * 9950 // 10000
        assert plan["amount1_min"] < 995 * 10 ** 18

    def test_zero_slippage_stays_mintable(self, manager, contracts):
        launch = LaunchConfig(token="HOLMES", price_lower="0.0001", price_upper="0.1",
                              amount="100000000", slippage_bps=0)
        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        taken = single_sided_mint_amount(plan["tick_lower"], plan["tick_upper"], SUPPLY, False)
        assert plan["amount1_min"] == taken
        assert plan["amount1_min"] < plan["amount1_desired"]

    def test_example_config_mints(self, manager, contracts):
        launch = LaunchConfig.load(Path(__file__).parent.parent / "config" / "launch.json")
        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        taken = single_sided_mint_amount(plan["tick_lower"], plan["tick_upper"], SUPPLY, False)
        assert plan["amount0_min"] == 0
        assert plan["amount1_min"] <= taken

    def test_uninitialized_pool_uses_start_price(self, manager, launch, contracts):
        contracts["factory"].get_pool.side_effect = None
        contracts["factory"].get_pool.return_value = POOL
        contracts["pool_cls"].return_value.slot0.return_value = [0, 0, 0]

        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        assert plan["pool_exists"] is True
        assert plan["pool_initialized"] is False
        assert plan["current_tick"] == 92108
        assert plan["sqrt_price_x96"] == 100 * Q96
        assert (plan["tick_lower"], plan["tick_upper"]) == (23000, 92000)

    def test_existing_pool_uses_live_tick(self, manager, launch, contracts, caplog):
        contracts["factory"].get_pool.side_effect = None
        contracts["factory"].get_pool.return_value = POOL
        pool = contracts["pool_cls"].return_value
        pool.slot0.return_value = [Q96, 50000, 0]

        with caplog.at_level(logging.WARNING, logger=MODULE):
            plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()

        assert plan["pool_exists"] is True
        assert plan["pool"] == POOL
        assert plan["current_tick"] == 50000
        assert plan["sqrt_price_x96"] == Q96
        assert (plan["tick_lower"], plan["tick_upper"]) == (23000, 50000)
        assert "Range moved" in caplog.text

    def test_existing_pool_above_range(self, manager, launch, contracts):
        contracts["factory"].get_pool.side_effect = None
        contracts["factory"].get_pool.return_value = POOL
        pool = contracts["pool_cls"].return_value
        pool.slot0.return_value = [200 * Q96, 105967, 0]

        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        assert (plan["tick_lower"], plan["tick_upper"]) == (23000, 92200)

    def test_no_clamp(self, manager, contracts, caplog):
        launch = LaunchConfig(token="HOLMES", price_lower="0.0001", price_upper="0.1",
                              amount="1", clamp=False)
        with caplog.at_level(logging.WARNING, logger=MODULE):
            plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        assert (plan["tick_lower"], plan["tick_upper"]) == (23000, 92200)
        assert plan["single_sided"] is False
        assert "contains current tick" in caplog.text

    def test_eth_maps_to_weth(self, manager, contracts):
        manager.config.common_tokens = {"HOLMES": HOLMES}
        launch = LaunchConfig(token="HOLMES", quote_token="ETH", price_lower="0.0001",
                              price_upper="0.1", amount="1")
        plan = LiquidityBootstrapper(manager=manager, launch=launch).plan()
        assert plan["quote"]["address"] == WETH


class TestBootstrap:
    """Tests for LiquidityBootstrapper.bootstrap."""

    def test_creates_pool_and_mints(self, manager, launch, contracts):
        result = LiquidityBootstrapper(manager=manager, launch=launch).bootstrap()

        holmes = contracts["tokens"][HOLMES]
        holmes.approve.assert_called_once_with(NFPM_ADDRESS, SUPPLY)
        contracts["nfpm"].create_and_initialize_pool_if_necessary.assert_called_once_with(
            WETH, HOLMES, 10000, 100 * Q96
        )

        params = contracts["nfpm"].mint.call_args[0][0]
        assert params["tick_lower"] == 23000
        assert params["tick_upper"] == 92000
        assert params["amount0_desired"] == 0
        assert params["amount1_desired"] == SUPPLY
        assert params["recipient"] == DEPLOYER

        assert result["pool"] == POOL
        assert result["token_id"] == 42
        assert result["approve_tx"] == "0xa11"
        assert result["create_pool_tx"] == "0xc0de"
        assert result["mint_tx"] == "0x3117"
        assert result["dry_run"] is False

    def test_dry_run(self, manager, launch, contracts):
        result = LiquidityBootstrapper(manager=manager, launch=launch).bootstrap(dry_run=True)
        assert result["dry_run"] is True
        assert "token_id" not in result
        contracts["nfpm"].mint.assert_not_called()

    def test_existing_pool_skips_creation(self, manager, launch, contracts):
        contracts["factory"].get_pool.side_effect = None
        contracts["factory"].get_pool.return_value = POOL
        pool = contracts["pool_cls"].return_value
        pool.slot0.return_value = [100 * Q96, 92108, 0]

        result = LiquidityBootstrapper(manager=manager, launch=launch).bootstrap()
        contracts["nfpm"].create_and_initialize_pool_if_necessary.assert_not_called()
        assert result["create_pool_tx"] is None

    def test_uninitialized_pool_is_initialized(self, manager, launch, contracts):
        contracts["factory"].get_pool.side_effect = None
        contracts["factory"].get_pool.return_value = POOL
        contracts["pool_cls"].return_value.slot0.return_value = [0, 0, 0]

        result = LiquidityBootstrapper(manager=manager, launch=launch).bootstrap()
        contracts["nfpm"].create_and_initialize_pool_if_necessary.assert_called_once_with(
            WETH, HOLMES, 10000, 100 * Q96
        )
        assert result["create_pool_tx"] == "0xc0de"
        assert result["pool"] == POOL

    def test_allowance_already_set(self, manager, launch, contracts):
        bootstrapper = LiquidityBootstrapper(manager=manager, launch=launch)
        bootstrapper.plan()
        contracts["tokens"][HOLMES].approve.return_value = None
        contracts["factory"].get_pool.side_effect = [None, POOL]

        result = bootstrapper.bootstrap()
        assert result["approve_tx"] is None

    def test_insufficient_balance(self, manager, launch, contracts):
        bootstrapper = LiquidityBootstrapper(manager=manager, launch=launch)
        bootstrapper.plan()
        contracts["tokens"][HOLMES].balance = SUPPLY - 1
        contracts["factory"].get_pool.side_effect = [None, POOL]

        with pytest.raises(InsufficientBalanceError):
            bootstrapper.bootstrap()
        contracts["nfpm"].mint.assert_not_called()

    def test_pool_missing_after_creation(self, manager, launch, contracts):
        contracts["factory"].get_pool.side_effect = [None, None]
        with pytest.raises(PoolError):
            LiquidityBootstrapper(manager=manager, launch=launch).bootstrap()
