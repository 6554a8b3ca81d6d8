"""Custom exceptions for token launch tooling"""


class LaunchError(Exception):
    """Base exception for all launch errors"""
    pass


class ConfigError(LaunchError):
    """Configuration-related errors"""
    pass


class ConnectionError(LaunchError):
    """Web3 connection errors"""
    pass


class TransactionError(LaunchError):
    """Transaction execution errors"""
    pass


class InsufficientBalanceError(LaunchError):
    """Insufficient token balance"""
    pass


class PoolError(LaunchError):
    """Pool-related errors (not found, not initialized, etc.)"""
    pass


class DeploymentError(LaunchError):
    """Contract deployment errors (bad artifact, reverted constructor, etc.)"""
    pass


class DomainError(LaunchError, ValueError):
    """
    Input outside the mathematically valid domain.

    Raised for non-positive prices or spacings and for ticks outside the
    global tick range. Never retried: it signals a mistake upstream.
    """
    pass


class PrecisionWarning(UserWarning):
    """Float math may diverge materially from the exact value"""
    pass
