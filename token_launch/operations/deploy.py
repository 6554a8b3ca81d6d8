"""Launch token deployment from a compiled artifact"""

import json
import logging
from pathlib import Path

from ..core.connection import Web3Manager
from ..core.exceptions import DeploymentError
from ..contracts.erc20 import ERC20
from ..utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)


def load_artifact(path):
    """
    Read ABI and bytecode from a compiled contract artifact.

    Accepts Hardhat artifacts ("bytecode": "0x...") and Foundry artifacts
    ("bytecode": {"object": "0x..."}).

    Returns:
        (abi, bytecode)
    """
    path = Path(path)
    if not path.exists():
        raise DeploymentError(f"Artifact not found: {path}")

    with open(path) as f:
        try:
            artifact = json.load(f)
        except json.JSONDecodeError as e:
            raise DeploymentError(f"Artifact is not valid JSON: {path}: {e}")

    abi = artifact.get("abi")
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")

    if not abi:
        raise DeploymentError(f"Artifact has no ABI: {path}")
    if not bytecode or bytecode in ("0x", "0x0"):
        raise DeploymentError(f"Artifact has no bytecode (abstract contract or interface?): {path}")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return abi, bytecode


class TokenDeployer:
    """Deploy the launch token and report its details"""

    def __init__(self, manager=None, gas_manager=None):
        """
        Args:
            manager: Web3Manager instance (created with signer if None)
            gas_manager: GasManager instance (created if None)
        """
        self.manager = manager or Web3Manager(require_signer=True)
        self.tx_builder = TransactionBuilder(self.manager, gas_manager)
        self.gas_manager = self.tx_builder.gas_manager

    def deploy(self, artifact_path, owner=None, constructor_args=None):
        """
        Deploy a token contract.

        Args:
            artifact_path: Compiled artifact JSON
            owner: Initial owner (defaults to the deployer)
            constructor_args: Explicit constructor arguments (default: [owner])

        Returns:
            Dict with address, tx hash, and token details
        """
        abi, bytecode = load_artifact(artifact_path)

        owner = self.manager.checksum(owner) if owner else self.manager.address
        args = list(constructor_args) if constructor_args is not None else [owner]

        factory = self.manager.w3.eth.contract(abi=abi, bytecode=bytecode)
        logger.info("Deploying %s from %s", Path(artifact_path).name, self.manager.address)
        receipt = self.tx_builder.build_and_send(factory.constructor(*args), operation_type="deploy")

        address = receipt.contractAddress
        if not address:
            raise DeploymentError(f"No contract address in receipt {receipt.transactionHash.hex()}")
        logger.info("Token deployed at %s", address)

        token = ERC20(self.manager, address, self.gas_manager)
        total_supply = token.total_supply()

        return {
            "address": address,
            "tx_hash": receipt.transactionHash.hex(),
            "block": receipt.blockNumber,
            "gas_used": receipt.gasUsed,
            "chain_id": self.manager.chain_id,
            "deployer": self.manager.address,
            "owner": owner,
            "constructor_args": args,
            "name": token.name,
            "symbol": token.symbol,
            "decimals": token.decimals,
            "total_supply": token.from_wei(total_supply),
            "total_supply_wei": str(total_supply),
        }
