"""Sign, send and confirm launch transactions"""

import logging

from .gas import GasManager
from ..core.exceptions import ConfigError, TransactionError

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """EIP-1559 transactions for contract calls and deployments"""

    def __init__(self, manager, gas_manager=None, receipt_timeout=180):
        """
        Args:
            manager: Web3Manager instance
            gas_manager: GasManager (created from gas_config.json if None)
            receipt_timeout: Seconds to wait for each receipt
        """
        self.manager = manager
        self.gas_manager = gas_manager or GasManager(manager)
        self.receipt_timeout = receipt_timeout

    def build(self, contract_func, operation_type=None, gas_buffer=1.2, value=0):
        """
        Transaction dict for a contract function or constructor.

        Args:
            contract_func: Bound function or constructor
            operation_type: Key for the fallback gas limit
            gas_buffer: Multiplier on the gas estimate
            value: Wei to attach
        """
        fees = self.gas_manager.getGasParams()
        gas = self.gas_manager.estimateGas(contract_func, self.manager.address, operation_type)

        tx = {
            "from": self.manager.address,
            "nonce": self.manager.get_nonce(),
            "gas": int(gas * gas_buffer),
            "chainId": self.manager.chain_id,
            "type": 2,
            **fees,
        }
        if value > 0:
            tx["value"] = value
        return contract_func.build_transaction(tx)

    def send(self, tx, operation_type=None):
        """Sign and broadcast; returns the transaction hash"""
        if self.manager.account is None:
            raise ConfigError("A signer is required to send transactions (set PRIVATE_KEY)")

        signed = self.manager.account.sign_transaction(tx)
        tx_hash = self.manager.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Sent %s tx %s", operation_type or "transaction", tx_hash.hex())
        return tx_hash

    def wait(self, tx_hash, operation_type=None):
        """
        Wait for the receipt.

        Raises:
            TransactionError: If the transaction reverted
        """
        label = operation_type or "transaction"
        receipt = self.manager.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.status != 1:
            raise TransactionError(f"{label} reverted: {receipt.transactionHash.hex()}")

        logger.info("%s confirmed in block %s (gas used %s)", label, receipt.blockNumber, receipt.gasUsed)
        return receipt

    def build_and_send(self, contract_func, operation_type=None, gas_buffer=1.2, value=0):
        """Build, sign, send and wait; returns the receipt"""
        if self.manager.account is None:
            raise ConfigError("A signer is required to send transactions (set PRIVATE_KEY)")

        tx = self.build(contract_func, operation_type, gas_buffer, value)
        return self.wait(self.send(tx, operation_type), operation_type)
