"""NonfungiblePositionManager: pool creation and position minting"""

import time
import logging

from ..config import UniswapV3Config
from ....utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)

# Field order of INonfungiblePositionManager.MintParams
MINT_FIELDS = (
    "token0",
    "token1",
    "fee",
    "tick_lower",
    "tick_upper",
    "amount0_desired",
    "amount1_desired",
    "amount0_min",
    "amount1_min",
    "recipient",
    "deadline",
)

DEFAULT_DEADLINE = 1200


class NFPM:
    """The chain's position manager, used to open the launch position"""

    def __init__(self, manager, address=None, gas_manager=None):
        """
        Args:
            manager: Web3Manager instance
            address: Override for the configured position manager
            gas_manager: Shared GasManager (created if None)
        """
        self.manager = manager
        self.address = manager.checksum(address or UniswapV3Config().nfpm_address(manager.chain_id))
        self.contract = manager.get_contract(self.address, "uniswap_v3_nfpm")
        self.tx_builder = TransactionBuilder(manager, gas_manager)

    def create_and_initialize_pool_if_necessary(self, token0, token1, fee, sqrt_price_x96):
        """Create the pool at sqrt_price_x96; the contract skips pools that already exist"""
        logger.info("Creating pool %s/%s fee %s at sqrtPriceX96 %s", token0, token1, fee, sqrt_price_x96)
        func = self.contract.functions.createAndInitializePoolIfNecessary(
            self.manager.checksum(token0), self.manager.checksum(token1), fee, sqrt_price_x96
        )
        return self.tx_builder.build_and_send(func, operation_type="createPool")

    def _mint_params(self, params):
        values = dict(params)
        values.setdefault("deadline", int(time.time()) + DEFAULT_DEADLINE)
        for key in ("token0", "token1", "recipient"):
            values[key] = self.manager.checksum(values[key])
        return tuple(values[name] for name in MINT_FIELDS)

    def mint(self, params, gas_buffer=1.2):
        """
        Open a new position.

        Args:
            params: Dict keyed by MINT_FIELDS; deadline defaults to 20 minutes out
            gas_buffer: Multiplier on the gas estimate

        Returns:
            Dict with receipt, token_id, liquidity, amount0 and amount1. The
            last four are None if no IncreaseLiquidity event was emitted.
        """
        receipt = self.tx_builder.build_and_send(
            self.contract.functions.mint(self._mint_params(params)),
            operation_type="mint",
            gas_buffer=gas_buffer,
        )

        result = dict.fromkeys(("token_id", "liquidity", "amount0", "amount1"))
        result["receipt"] = receipt
        events = self.contract.events.IncreaseLiquidity().process_receipt(receipt)
        if events:
            args = events[0]["args"]
            result.update(
                token_id=args["tokenId"],
                liquidity=args["liquidity"],
                amount0=args["amount0"],
                amount1=args["amount1"],
            )
            logger.info("Minted position %s with liquidity %s", result["token_id"], result["liquidity"])
        return result
