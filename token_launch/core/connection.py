"""Chain connection and deployer account"""

import os
import logging
from web3 import Web3
from dotenv import load_dotenv
from .config import Config
from .exceptions import ConnectionError, ConfigError

logger = logging.getLogger(__name__)

ENV_FILES = (".env", "wallet.env")


class Web3Manager:
    """
    RPC connection plus the launch wallet.

    RPC_URL comes from .env; PRIVATE_KEY and PUBLIC_KEY from wallet.env.
    Without a signer the manager is read-only and PUBLIC_KEY (if any) is
    used as the default address.
    """

    def __init__(self, require_signer=False, rpc_url=None):
        """
        Args:
            require_signer: Load PRIVATE_KEY so transactions can be sent
            rpc_url: Endpoint override (defaults to RPC_URL)
        """
        for env_file in ENV_FILES:
            load_dotenv(env_file)

        self.config = Config()
        self.rpc_url = rpc_url or os.getenv("RPC_URL")
        if not self.rpc_url:
            raise ConfigError("RPC_URL not set (add it to .env)")

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url))
        if not self.w3.is_connected():
            raise ConnectionError(f"Failed to connect to {self.rpc_url}")
        logger.debug("Connected to chain %s", self.w3.eth.chain_id)

        self.account = self._load_account() if require_signer else None

    def _load_account(self):
        private_key = os.getenv("PRIVATE_KEY")
        if not private_key:
            raise ConfigError("PRIVATE_KEY not set (add it to wallet.env)")
        account = self.w3.eth.account.from_key(private_key)
        logger.debug("Signer %s loaded", account.address)
        return account

    @property
    def address(self):
        """Signer address, else PUBLIC_KEY, else None"""
        if self.account:
            return self.account.address
        public_key = os.getenv("PUBLIC_KEY")
        return self.checksum(public_key) if public_key else None

    def _require_address(self, address):
        addr = address or self.address
        if not addr:
            raise ConfigError("No address given and no PUBLIC_KEY/PRIVATE_KEY configured")
        return self.checksum(addr)

    @property
    def chain_id(self):
        return self.w3.eth.chain_id

    def get_balance(self, address=None):
        """Native balance in wei"""
        return self.w3.eth.get_balance(self._require_address(address))

    def get_nonce(self, address=None):
        """Nonce including pending transactions"""
        return self.w3.eth.get_transaction_count(self._require_address(address), "pending")

    def get_contract(self, address, abi_name):
        """Contract instance for a named ABI"""
        return self.w3.eth.contract(
            address=self.checksum(address),
            abi=self.config.get_abi(abi_name),
        )

    def checksum(self, address):
        return Web3.to_checksum_address(address)
