"""Wallet balances for the launch account"""

from .connection import Web3Manager
from ..contracts.erc20 import ERC20


def _row(symbol, address, balance_wei, decimals):
    return {
        "symbol": symbol,
        "address": address,
        "balance": balance_wei / (10 ** decimals),
        "balance_wei": str(balance_wei),
        "decimals": decimals,
    }


class BalanceQuery:
    """Native and tokens.json balances, plus any extra token addresses"""

    def __init__(self, manager=None):
        self.manager = manager or Web3Manager(require_signer=False)

    def get_native_balance(self, address=None):
        return _row("ETH", None, self.manager.get_balance(address), 18)

    def get_token_balance(self, token_address, address=None):
        token = ERC20(self.manager, token_address)
        return _row(token.symbol, token.address, token.balance_of(address), token.decimals)

    def get_all_balances(self, address=None, extra_tokens=()):
        """
        Args:
            address: Address to query (defaults to the wallet)
            extra_tokens: Addresses not in tokens.json, e.g. a just-deployed token

        Returns:
            Dict with address and list of balance rows; a token that cannot
            be read gets an "error" row instead of failing the listing
        """
        addr = self.manager.checksum(address) if address else self.manager.address

        tokens = dict(self.manager.config.common_tokens)
        known = {a.lower() for a in tokens.values()}
        for token_address in extra_tokens:
            if token_address.lower() not in known:
                known.add(token_address.lower())
                tokens[token_address] = token_address

        balances = [self.get_native_balance(addr)]
        for symbol, token_address in tokens.items():
            try:
                balances.append(self.get_token_balance(token_address, addr))
            except Exception as e:
                balances.append({"symbol": symbol, "address": token_address, "error": str(e)})

        return {"address": addr, "balances": balances}
