"""
Token Launch - deploy a token and seed a single-sided Uniswap V3 position
"""

from .core.connection import Web3Manager
from .core.config import Config
from .core.exceptions import LaunchError, ConfigError, ConnectionError, TransactionError, DomainError

__version__ = "0.1.0"
__all__ = [
    "Web3Manager",
    "Config",
    "LaunchError",
    "ConfigError",
    "ConnectionError",
    "TransactionError",
    "DomainError",
]
