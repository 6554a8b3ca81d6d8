"""Single-sided liquidity bootstrap for a freshly launched token"""

import time
import logging
from dataclasses import replace

from ....core.connection import Web3Manager
from ....core.exceptions import InsufficientBalanceError, PoolError
from ....contracts.erc20 import ERC20
from ..config import UniswapV3Config
from ..contracts.nfpm import NFPM
from ..contracts.pool import Factory, Pool
from ..math import (
    clamp_single_sided,
    compute_single_sided_range,
    is_single_sided,
    is_token0,
    resolve_start_price,
    single_sided_mint_amount,
    sort_tokens,
    sqrt_price_x96_to_price,
    tick_to_price,
)
from ..types import LaunchConfig

logger = logging.getLogger(__name__)


class LiquidityBootstrapper:
    """
    Create the launch pool and seed it with a position made only of the
    launch token.

    The range is derived from the configured prices first, then the boundary
    nearest the current price is moved so no quote token is needed.
    """

    def __init__(self, manager=None, launch=None, gas_manager=None):
        """
        Args:
            manager: Web3Manager instance (created with signer if None)
            launch: LaunchConfig (loaded from launch.json if None)
            gas_manager: GasManager shared by all transactions (created if None)
        """
        self.manager = manager or Web3Manager(require_signer=True)
        self.launch = launch or LaunchConfig.load()
        self.config = UniswapV3Config()
        self.gas_manager = gas_manager

        chain_id = self.manager.chain_id
        self.chain_id = chain_id
        self.factory = Factory(self.manager, self.config.factory_address(chain_id))
        self.nfpm = NFPM(self.manager, gas_manager=gas_manager)
        self.tick_spacing = self.config.get_tick_spacing(self.launch.fee)

    def _resolve_token(self, symbol_or_address):
        """Resolve symbol or address, mapping WETH/ETH to the chain's wrapped token"""
        if symbol_or_address.upper() in ("ETH", "WETH") and \
                symbol_or_address.upper() not in self.manager.config.common_tokens:
            return self.manager.checksum(self.config.weth_address(self.chain_id))
        return self.manager.checksum(self.manager.config.get_token_address(symbol_or_address))

    def _amount_min(self, tick_range, amount_wei, base_first):
        """
        Mint minimum for the base token.

        Zero unless slippage_bps is set, then measured from what the pool
        will actually take, which is a few wei below the desired amount.
        """
        slippage_bps = self.launch.slippage_bps
        if slippage_bps is None:
            return 0
        if not is_single_sided(tick_range.tick_lower, tick_range.tick_upper, tick_range.current_tick, base_first):
            logger.warning("Range holds the current tick; ignoring slippage_bps")
            return 0
        expected = single_sided_mint_amount(tick_range.tick_lower, tick_range.tick_upper, amount_wei, base_first)
        return expected * (10000 - slippage_bps) // 10000

    def plan(self):
        """
        Work out every parameter of the bootstrap without sending anything.

        Returns:
            Dict with token ordering, pool state, ticks, prices, and amounts
        """
        launch = self.launch
        token = ERC20(self.manager, self._resolve_token(launch.token), self.gas_manager)
        quote = ERC20(self.manager, self._resolve_token(launch.quote_token), self.gas_manager)

        base_first = is_token0(token.address, quote.address)
        token0, token1 = sort_tokens(token.address, quote.address)
        start_price = resolve_start_price(launch.start_price, launch.price_lower, launch.price_upper)

        derived = compute_single_sided_range(
            launch.price_lower,
            launch.price_upper,
            start_price,
            self.tick_spacing,
            base_first,
            decimals_base=token.decimals,
            decimals_quote=quote.decimals,
        )
        logger.debug("Derived range %s", derived)

        # An initialized pool keeps its own price; plan around it
        pool_address = self.factory.get_pool(token0, token1, launch.fee)
        pool_initialized = False
        if pool_address:
            sqrt_price_x96, current_tick = Pool(self.manager, pool_address).slot0()[:2]
            if sqrt_price_x96:
                pool_initialized = True
                derived = replace(derived, sqrt_price_x96=sqrt_price_x96, current_tick=current_tick)
                logger.info("Pool %s exists at tick %s", pool_address, current_tick)
            else:
                logger.info("Pool %s exists but is not initialized; using the start price", pool_address)

        if launch.clamp:
            tick_range = clamp_single_sided(derived, derived.current_tick, self.tick_spacing, base_first)
            if (tick_range.tick_lower, tick_range.tick_upper) != (derived.tick_lower, derived.tick_upper):
                logger.warning(
                    "Range moved from [%s, %s] to [%s, %s] to stay single-sided at tick %s",
                    derived.tick_lower, derived.tick_upper,
                    tick_range.tick_lower, tick_range.tick_upper, derived.current_tick,
                )
        else:
            tick_range = derived
            if not is_single_sided(derived.tick_lower, derived.tick_upper, derived.current_tick, base_first):
                logger.warning("Range [%s, %s] contains current tick %s; mint will need %s too",
                               derived.tick_lower, derived.tick_upper, derived.current_tick, quote.symbol)

        amount_wei = token.to_wei(launch.amount)
        amount_min = self._amount_min(tick_range, amount_wei, base_first)
        if base_first:
            amounts = (amount_wei, 0, amount_min, 0)
        else:
            amounts = (0, amount_wei, 0, amount_min)

        decimals0, decimals1 = (
            (token.decimals, quote.decimals) if base_first else (quote.decimals, token.decimals)
        )

        return {
            "chain_id": self.chain_id,
            "token": {"symbol": token.symbol, "address": token.address, "decimals": token.decimals},
            "quote": {"symbol": quote.symbol, "address": quote.address, "decimals": quote.decimals},
            "token0": token0,
            "token1": token1,
            "token_is_token0": base_first,
            "fee": launch.fee,
            "tick_spacing": self.tick_spacing,
            "pool": pool_address,
            "pool_exists": pool_address is not None,
            "pool_initialized": pool_initialized,
            "start_price": str(start_price),
            "sqrt_price_x96": tick_range.sqrt_price_x96,
            "current_tick": tick_range.current_tick,
            "tick_lower": tick_range.tick_lower,
            "tick_upper": tick_range.tick_upper,
            "derived_tick_lower": derived.tick_lower,
            "derived_tick_upper": derived.tick_upper,
            "pool_price": sqrt_price_x96_to_price(tick_range.sqrt_price_x96, decimals0, decimals1),
            "price_at_tick_lower": tick_to_price(tick_range.tick_lower, decimals0, decimals1),
            "price_at_tick_upper": tick_to_price(tick_range.tick_upper, decimals0, decimals1),
            "single_sided": is_single_sided(
                tick_range.tick_lower, tick_range.tick_upper, tick_range.current_tick, base_first
            ),
            "amount": str(launch.amount),
            "amount0_desired": amounts[0],
            "amount1_desired": amounts[1],
            "amount0_min": amounts[2],
            "amount1_min": amounts[3],
        }

    def bootstrap(self, dry_run=False):
        """
        Approve, create the pool if missing, and mint the position.

        Args:
            dry_run: Only plan (no transactions)

        Returns:
            Plan dict extended with pool address, token ID, and tx hashes
        """
        plan = self.plan()
        if dry_run:
            plan["dry_run"] = True
            return plan

        token = ERC20(self.manager, plan["token"]["address"], self.gas_manager)
        amount_wei = plan["amount0_desired"] or plan["amount1_desired"]

        balance = token.balance_of()
        if balance < amount_wei:
            raise InsufficientBalanceError(
                f"Insufficient {token.symbol} balance: have {token.from_wei(balance)}, "
                f"need {token.from_wei(amount_wei)}"
            )

        approve_receipt = token.approve(self.nfpm.address, amount_wei)
        plan["approve_tx"] = approve_receipt.transactionHash.hex() if approve_receipt else None

        plan["create_pool_tx"] = None
        if not plan["pool_initialized"]:
            receipt = self.nfpm.create_and_initialize_pool_if_necessary(
                plan["token0"], plan["token1"], plan["fee"], plan["sqrt_price_x96"]
            )
            plan["create_pool_tx"] = receipt.transactionHash.hex()
            plan["pool"] = self.factory.get_pool(plan["token0"], plan["token1"], plan["fee"])
            if not plan["pool"]:
                raise PoolError(f"Pool not found after creation tx {plan['create_pool_tx']}")
            logger.info("Pool created at %s", plan["pool"])

        result = self.nfpm.mint({
            "token0": plan["token0"],
            "token1": plan["token1"],
            "fee": plan["fee"],
            "tick_lower": plan["tick_lower"],
            "tick_upper": plan["tick_upper"],
            "amount0_desired": plan["amount0_desired"],
            "amount1_desired": plan["amount1_desired"],
            "amount0_min": plan["amount0_min"],
            "amount1_min": plan["amount1_min"],
            "recipient": self.manager.address,
            "deadline": int(time.time()) + 60 * self.launch.deadline_minutes,
        })

        plan.update({
            "dry_run": False,
            "token_id": result["token_id"],
            "liquidity": result["liquidity"],
            "amount0": result["amount0"],
            "amount1": result["amount1"],
            "mint_tx": result["receipt"].transactionHash.hex(),
            "gas_used": result["receipt"].gasUsed,
        })
        return plan
