"""Core module - configuration, connection, exceptions, and balances"""

from .config import Config
from .connection import Web3Manager
from .exceptions import (
    LaunchError,
    ConfigError,
    ConnectionError,
    TransactionError,
    InsufficientBalanceError,
    PoolError,
    DeploymentError,
    DomainError,
    PrecisionWarning,
)
from .balances import BalanceQuery

__all__ = [
    "Config",
    "Web3Manager",
    "LaunchError",
    "ConfigError",
    "ConnectionError",
    "TransactionError",
    "InsufficientBalanceError",
    "PoolError",
    "DeploymentError",
    "DomainError",
    "PrecisionWarning",
    "BalanceQuery",
]
