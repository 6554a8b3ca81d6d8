"""Uniswap V3 operations"""

from .bootstrap import LiquidityBootstrapper

__all__ = ["LiquidityBootstrapper"]
