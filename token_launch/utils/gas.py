"""EIP-1559 fee parameters for launch transactions"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from ..core.config import PACKAGE_DIR, USER_HOME_DIR, load_json
from ..core.exceptions import ConfigError, TransactionError

logger = logging.getLogger(__name__)

GWEI = 10 ** 9

# Used when the node cannot estimate, e.g. minting into a pool created in
# the same run
FALLBACK_GAS_LIMITS = {
    "deploy": 3000000,
    "createPool": 5000000,
    "approve": 65000,
    "mint": 1000000,
    "default": 500000,
}


class GasPriceTooHighError(TransactionError):
    """Current base fee is above the user's maxFeePerGas"""
    pass


@dataclass
class GasConfig:
    """
    Fee caps from gas_config.json. Fees are in Gwei.

    Attributes:
        maxFeePerGas: Hard cap on the total fee (None = base fee * 1.2 + tip)
        maxPriorityFeePerGas: Validator tip
        gasLimit: Per-operation fallback limits, merged over the defaults
    """

    maxFeePerGas: Optional[float] = None
    maxPriorityFeePerGas: float = 1.5
    gasLimit: dict = field(default_factory=dict)

    @classmethod
    def load(cls, config_path=None):
        """
        Load from an explicit path or the first gas_config.json found in the
        working directory, ~/.token-launch, or the project root. Defaults
        when none exists.
        """
        candidates = [
            config_path,
            Path.cwd() / "gas_config.json",
            USER_HOME_DIR / "gas_config.json",
            PACKAGE_DIR.parent / "gas_config.json",
        ]
        for path in candidates:
            if path and Path(path).exists():
                logger.debug("Loading gas config from %s", path)
                data = load_json(path, "gas_config.json")
                unknown = set(data) - {f.name for f in fields(cls)}
                if unknown:
                    raise ConfigError(f"Unknown gas config keys: {sorted(unknown)}")
                return cls(**data)
        return cls()

    def getGasLimit(self, operation_type):
        limits = {**FALLBACK_GAS_LIMITS, **self.gasLimit}
        return limits.get(operation_type, limits["default"])


class GasManager:
    """Fee parameters and gas estimates, with optional CLI overrides"""

    def __init__(self, manager, maxFeePerGas=None, maxPriorityFeePerGas=None, config=None):
        """
        Args:
            manager: Web3Manager instance
            maxFeePerGas: Cap in Gwei (overrides gas_config.json)
            maxPriorityFeePerGas: Tip in Gwei (overrides gas_config.json)
            config: GasConfig (loaded if None)
        """
        self.manager = manager
        self.config = config or GasConfig.load()
        self.maxFeePerGas = maxFeePerGas if maxFeePerGas is not None else self.config.maxFeePerGas
        self.maxPriorityFeePerGas = (
            maxPriorityFeePerGas if maxPriorityFeePerGas is not None
            else self.config.maxPriorityFeePerGas
        )

    def getGasLimit(self, operation_type=None):
        return self.config.getGasLimit(operation_type or "default")

    def getBaseFee(self):
        """Base fee of the latest block in wei"""
        return self.manager.w3.eth.get_block("latest").get("baseFeePerGas", 0)

    def getGasParams(self):
        """
        maxFeePerGas and maxPriorityFeePerGas in wei.

        Raises:
            GasPriceTooHighError: If the base fee is above the cap
        """
        base_fee = self.getBaseFee()
        tip = int((self.maxPriorityFeePerGas or 1.5) * GWEI)

        if self.maxFeePerGas is None:
            max_fee = int((base_fee + tip) * 1.2)
        else:
            max_fee = int(self.maxFeePerGas * GWEI)
            if max_fee < base_fee:
                raise GasPriceTooHighError(
                    f"Base fee {base_fee / GWEI:.2f} Gwei is above maxFeePerGas "
                    f"{self.maxFeePerGas} Gwei"
                )

        return {"maxFeePerGas": max_fee, "maxPriorityFeePerGas": tip}

    def estimateGas(self, contract_func, from_address, operation_type=None):
        """Node estimate, or the fallback limit for operation_type"""
        try:
            return contract_func.estimate_gas({"from": from_address})
        except Exception as e:
            fallback = self.getGasLimit(operation_type)
            logger.warning(
                "Gas estimation failed for %s (%s); using fallback %d",
                operation_type or "default", e, fallback,
            )
            return fallback
