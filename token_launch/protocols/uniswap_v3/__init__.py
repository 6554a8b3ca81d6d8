"""Uniswap V3 protocol implementation"""

from .config import UniswapV3Config
from .contracts.nfpm import NFPM
from .contracts.pool import Factory, Pool
from .operations.bootstrap import LiquidityBootstrapper
from .types import LaunchConfig, TickRange

__all__ = [
    "UniswapV3Config",
    "NFPM",
    "Factory",
    "Pool",
    "LiquidityBootstrapper",
    "LaunchConfig",
    "TickRange",
]
