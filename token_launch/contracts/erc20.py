"""ERC20 reads and approvals for the launch token and its quote asset"""

import logging
from decimal import Decimal

from ..utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("symbol", "name", "decimals")


class ERC20:
    """
    An ERC20 token bound to the manager's wallet.

    Metadata (symbol, name, decimals) is read once; balances and
    allowances are read on every call.
    """

    def __init__(self, manager, address, gas_manager=None):
        """
        Args:
            manager: Web3Manager instance
            address: Token contract address
            gas_manager: Shared GasManager for approvals (created if None)
        """
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(self.address, "erc20")
        self.tx_builder = TransactionBuilder(manager, gas_manager)
        self._info = None

    @property
    def info(self):
        if self._info is None:
            fns = self.contract.functions
            self._info = {"address": self.address}
            self._info.update({field: getattr(fns, field)().call() for field in METADATA_FIELDS})
        return self._info

    @property
    def symbol(self):
        return self.info["symbol"]

    @property
    def name(self):
        return self.info["name"]

    @property
    def decimals(self):
        return self.info["decimals"]

    def total_supply(self):
        return self.contract.functions.totalSupply().call()

    def balance_of(self, address=None):
        """Balance in base units (defaults to the wallet)"""
        return self.contract.functions.balanceOf(address or self.manager.address).call()

    def allowance(self, spender, owner=None):
        return self.contract.functions.allowance(owner or self.manager.address, spender).call()

    def to_wei(self, amount):
        """Human amount to base units; str and Decimal input is converted exactly"""
        return int(Decimal(str(amount)).scaleb(self.decimals))

    def from_wei(self, amount):
        return amount / (10 ** self.decimals)

    def approve(self, spender, amount_wei):
        """
        Make sure spender may pull amount_wei from the wallet.

        Returns:
            Receipt of the approval, or None when the current allowance
            already covers the amount
        """
        current = self.allowance(spender)
        if current >= amount_wei:
            logger.info("%s allowance for %s already %s", self.symbol, spender, self.from_wei(current))
            return None

        logger.info("Approving %s %s for %s", self.from_wei(amount_wei), self.symbol, spender)
        return self.tx_builder.build_and_send(
            self.contract.functions.approve(spender, amount_wei), operation_type="approve"
        )
