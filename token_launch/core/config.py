"""Configuration loading and management"""

import os
import json
import logging
from pathlib import Path
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent.parent
USER_HOME_DIR = Path.home() / ".token-launch"


def load_json(path, what="config"):
    """
    Read a JSON file, turning I/O and parse failures into ConfigError.

    Args:
        path: File to read
        what: Label used in error messages
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"{what} not found: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{what} is not valid JSON ({path}): {e}")


def config_dir_candidates():
    """Directories searched for user configuration, in order"""
    return [
        Path.cwd() / "config",
        PACKAGE_DIR.parent / "config",
        USER_HOME_DIR / "config",
    ]


def find_config_dir():
    """
    Locate the user config directory.

    LAUNCH_CONFIG_DIR wins when set and must exist.
    """
    env_path = os.getenv("LAUNCH_CONFIG_DIR")
    if env_path:
        path = Path(env_path)
        if not path.is_dir():
            raise ConfigError(f"LAUNCH_CONFIG_DIR does not exist: {env_path}")
        return path

    candidates = config_dir_candidates()
    for path in candidates:
        if path.is_dir():
            return path
    raise ConfigError(f"Could not find config directory. Searched: {[str(p) for p in candidates]}")


class Config:
    """Token registry and shared ABIs for the launch tooling"""

    _instance = None
    _config_dir = None
    _tokens = None
    _abis = None

    PACKAGE_ABIS = PACKAGE_DIR / "abis.json"

    MAX_UINT256 = 2 ** 256 - 1
    ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if Config._tokens is None:
            self._load()

    @classmethod
    def reset(cls):
        """Forget loaded configuration (next Config() reloads from disk)"""
        cls._instance = None
        cls._config_dir = None
        cls._tokens = None
        cls._abis = None

    def _load(self):
        config_dir = find_config_dir()
        logger.debug("Using config directory %s", config_dir)

        tokens = load_json(config_dir / "tokens.json", "tokens.json")
        Config._abis = load_json(self.PACKAGE_ABIS, "Shared ABIs")
        Config._config_dir = config_dir
        # Symbols are case-insensitive
        Config._tokens = {symbol.upper(): address for symbol, address in tokens.items()}

    @property
    def config_dir(self):
        """Directory the user configuration was loaded from"""
        return Config._config_dir

    @property
    def common_tokens(self):
        """Token symbol -> address mapping from tokens.json"""
        return Config._tokens or {}

    def get_abi(self, name):
        """
        Get ABI by name.

        Names prefixed "uniswap_v3_" are served by UniswapV3Config.
        """
        if name in Config._abis:
            return Config._abis[name]

        if name.startswith("uniswap_v3_"):
            from ..protocols.uniswap_v3.config import UniswapV3Config
            return UniswapV3Config().get_abi(name)

        raise ConfigError(f"ABI not found: {name}")

    def get_token_address(self, symbol_or_address):
        """Resolve a token symbol from tokens.json, or pass an address through"""
        token = symbol_or_address.upper()
        if token in self.common_tokens:
            return self.common_tokens[token]

        if symbol_or_address.startswith("0x") and len(symbol_or_address) == 42:
            return symbol_or_address

        raise ConfigError(f"Unknown token: {symbol_or_address} (add it to tokens.json)")
