"""Read-only views of the V3 factory and pools"""

from ....core.exceptions import PoolError
from ..math import sort_tokens


class Factory:
    """Pool lookup by pair and fee tier"""

    def __init__(self, manager, address):
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(self.address, "uniswap_v3_factory")

    def get_pool(self, token_a, token_b, fee):
        """Pool address for the pair, or None if nobody has created it"""
        token0, token1 = (self.manager.checksum(t) for t in sort_tokens(token_a, token_b))
        address = self.contract.functions.getPool(token0, token1, fee).call()
        return None if int(address, 16) == 0 else address


class Pool:
    """A deployed pool. Every property is a fresh call."""

    def __init__(self, manager, address):
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(self.address, "uniswap_v3_pool")

    def _call(self, name, *args):
        return getattr(self.contract.functions, name)(*args).call()

    def slot0(self):
        """(sqrtPriceX96, tick, observationIndex, ...) as returned by the pool"""
        return self._call("slot0")

    @property
    def sqrt_price_x96(self):
        return self.slot0()[0]

    @property
    def current_tick(self):
        """
        Raises:
            PoolError: If the pool exists but was never initialized
        """
        sqrt_price_x96, tick = self.slot0()[:2]
        if sqrt_price_x96 == 0:
            raise PoolError(f"Pool {self.address} is not initialized")
        return tick

    @property
    def fee(self):
        return self._call("fee")

    @property
    def tick_spacing(self):
        return self._call("tickSpacing")

    @property
    def token0(self):
        return self._call("token0")

    @property
    def token1(self):
        return self._call("token1")

    @property
    def liquidity(self):
        """In-range liquidity"""
        return self._call("liquidity")
