"""Uniswap V3 contract wrappers"""

from .nfpm import NFPM
from .pool import Factory, Pool

__all__ = ["NFPM", "Factory", "Pool"]
