"""Tests for the contract wrappers against mocked web3 contracts"""

from unittest.mock import MagicMock

import pytest

from token_launch.contracts.erc20 import ERC20
from token_launch.core.exceptions import PoolError
from token_launch.protocols.uniswap_v3.contracts.nfpm import NFPM
from token_launch.protocols.uniswap_v3.contracts.pool import Factory, Pool

WETH = "0x4200000000000000000000000000000000000006"
HOLMES = "0xA7de8462a852eBA2C9b4A3464C8fC577cb7090b8"
NFPM_ADDRESS = "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1"
DEPLOYER = "0x2222222222222222222222222222222222222222"
ZERO = "0x0000000000000000000000000000000000000000"


@pytest.fixture
def manager():
    manager = MagicMock()
    manager.checksum.side_effect = lambda a: a
    manager.address = DEPLOYER
    return manager


def _contract(manager):
    return manager.get_contract.return_value


class TestERC20:
    def test_metadata_read_once(self, manager):
        fns = _contract(manager).functions
        fns.symbol.return_value.call.return_value = "HOLMES"
        fns.name.return_value.call.return_value = "Holmes"
        fns.decimals.return_value.call.return_value = 18

        token = ERC20(manager, HOLMES, gas_manager=MagicMock())
        assert token.info == {"address": HOLMES, "symbol": "HOLMES", "name": "Holmes", "decimals": 18}
        assert token.symbol == "HOLMES"
        assert fns.symbol.call_count == 1

    def test_to_wei_exact(self, manager):
        _contract(manager).functions.decimals.return_value.call.return_value = 6
        token = ERC20(manager, HOLMES, gas_manager=MagicMock())
        assert token.to_wei("1.000001") == 1000001
        assert token.to_wei("100000000") == 100000000 * 10 ** 6

    def test_approve_skipped_when_allowance_covers(self, manager):
        fns = _contract(manager).functions
        fns.allowance.return_value.call.return_value = 10 ** 20
        fns.decimals.return_value.call.return_value = 18

        token = ERC20(manager, HOLMES, gas_manager=MagicMock())
        token.tx_builder = MagicMock()
        assert token.approve(NFPM_ADDRESS, 10 ** 18) is None
        token.tx_builder.build_and_send.assert_not_called()

    def test_approve_sends_when_short(self, manager):
        fns = _contract(manager).functions
        fns.allowance.return_value.call.return_value = 0
        fns.decimals.return_value.call.return_value = 18

        token = ERC20(manager, HOLMES, gas_manager=MagicMock())
        token.tx_builder = MagicMock()
        receipt = token.approve(NFPM_ADDRESS, 10 ** 18)

        fns.approve.assert_called_once_with(NFPM_ADDRESS, 10 ** 18)
        assert receipt is token.tx_builder.build_and_send.return_value


class TestPool:
    def test_factory_zero_address_is_none(self, manager):
        fns = _contract(manager).functions
        fns.getPool.return_value.call.return_value = ZERO
        assert Factory(manager, NFPM_ADDRESS).get_pool(HOLMES, WETH, 10000) is None
        fns.getPool.assert_called_once_with(WETH, HOLMES, 10000)

    def test_current_tick(self, manager):
        _contract(manager).functions.slot0.return_value.call.return_value = [100 * 2 ** 96, 92108, 0]
        assert Pool(manager, WETH).current_tick == 92108

    def test_uninitialized_pool(self, manager):
        _contract(manager).functions.slot0.return_value.call.return_value = [0, 0, 0]
        with pytest.raises(PoolError):
            Pool(manager, WETH).current_tick


class TestNFPM:
    PARAMS = {
        "token0": WETH,
        "token1": HOLMES,
        "fee": 10000,
        "tick_lower": 23000,
        "tick_upper": 92000,
        "amount0_desired": 0,
        "amount1_desired": 10 ** 26,
        "amount0_min": 0,
        "amount1_min": 0,
        "recipient": DEPLOYER,
        "deadline": 1700000000,
    }

    def test_mint_params_order(self, manager):
        nfpm = NFPM(manager, address=NFPM_ADDRESS, gas_manager=MagicMock())
        nfpm.tx_builder = MagicMock()
        nfpm.contract.events.IncreaseLiquidity.return_value.process_receipt.return_value = [
            {"args": {"tokenId": 7, "liquidity": 123, "amount0": 0, "amount1": 10 ** 26}}
        ]

        result = nfpm.mint(self.PARAMS)

        nfpm.contract.functions.mint.assert_called_once_with(
            (WETH, HOLMES, 10000, 23000, 92000, 0, 10 ** 26, 0, 0, DEPLOYER, 1700000000)
        )
        assert result["token_id"] == 7
        assert result["liquidity"] == 123
        assert result["receipt"] is nfpm.tx_builder.build_and_send.return_value

    def test_mint_without_event(self, manager):
        nfpm = NFPM(manager, address=NFPM_ADDRESS, gas_manager=MagicMock())
        nfpm.tx_builder = MagicMock()
        nfpm.contract.events.IncreaseLiquidity.return_value.process_receipt.return_value = []

        result = nfpm.mint(self.PARAMS)
        assert result["token_id"] is None
        assert result["amount1"] is None
