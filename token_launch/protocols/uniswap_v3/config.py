"""Uniswap V3 deployments, ABIs and fee tiers"""

from pathlib import Path

from ...core.config import load_json
from ...core.exceptions import ConfigError
from .types import FEE_TIERS

CHAIN_NAMES = {
    1: "mainnet",
    10: "optimism",
    137: "polygon",
    8453: "base",
    42161: "arbitrum",
    84532: "base_sepolia",
}

# Fixed by the factory for each fee tier
TICK_SPACING = dict(zip(FEE_TIERS, (1, 10, 60, 200)))


class UniswapV3Config:
    """Factory, position manager and WETH per chain, shipped with the package"""

    _instance = None
    _addresses = None
    _abis = None

    ADDRESSES_FILE = Path(__file__).parent / "addresses.json"
    ABIS_FILE = Path(__file__).parent / "abis.json"

    TICK_SPACING = TICK_SPACING

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if UniswapV3Config._addresses is None:
            UniswapV3Config._addresses = load_json(self.ADDRESSES_FILE, "V3 addresses")
            UniswapV3Config._abis = load_json(self.ABIS_FILE, "V3 ABIs")

    def get_contracts(self, chain_id):
        """Deployment addresses for a chain id"""
        network = CHAIN_NAMES.get(chain_id)
        if network is None:
            raise ConfigError(
                f"Uniswap V3 is not configured for chain {chain_id}. "
                f"Known chains: {sorted(CHAIN_NAMES)}"
            )
        if network not in UniswapV3Config._addresses:
            raise ConfigError(f"No V3 addresses for network: {network}")
        return UniswapV3Config._addresses[network]

    def nfpm_address(self, chain_id):
        return self.get_contracts(chain_id)["nfpm"]

    def factory_address(self, chain_id):
        return self.get_contracts(chain_id)["factory"]

    def weth_address(self, chain_id):
        """Wrapped native token, the default quote asset"""
        return self.get_contracts(chain_id)["weth"]

    def get_abi(self, name):
        """ABI by short ("pool") or prefixed ("uniswap_v3_pool") name"""
        short_name = name[len("uniswap_v3_"):] if name.startswith("uniswap_v3_") else name
        if short_name not in UniswapV3Config._abis:
            raise ConfigError(f"V3 ABI not found: {name}")
        return UniswapV3Config._abis[short_name]

    def get_tick_spacing(self, fee):
        if fee not in TICK_SPACING:
            raise ConfigError(f"Invalid fee tier: {fee}. Valid: {list(FEE_TIERS)}")
        return TICK_SPACING[fee]
