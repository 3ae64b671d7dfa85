"""Web3 access to a single Ethereum JSON-RPC endpoint."""

from __future__ import annotations

import logging
from typing import Any

from web3 import Web3

logger = logging.getLogger("eth_wallet_service.wallet.provider")

DEFAULT_TIMEOUT = 5.0


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)


class ChainClient:
    """Thin wrapper over a :class:`Web3` instance bound to one endpoint.

    Every call goes through the HTTP provider, so each one is bounded by
    the provider's request timeout.
    """

    def __init__(self, w3: Web3, endpoint: str = "") -> None:
        self.w3 = w3
        self.endpoint = endpoint

    @classmethod
    def connect(cls, endpoint: str, timeout: float = DEFAULT_TIMEOUT) -> ChainClient:
        """Build a client for *endpoint*. Does not touch the network.

        web3's own request retries are switched off: every call is made
        once and bounded by *timeout*.
        """
        provider = Web3.HTTPProvider(
            endpoint,
            request_kwargs={"timeout": timeout},
            exception_retry_configuration=None,
        )
        w3 = Web3(provider)
        return cls(w3, endpoint)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def block_number(self) -> int:
        """Latest block height. Doubles as the liveness probe."""
        return int(self.w3.eth.block_number)

    def get_balance(self, address: str) -> int:
        """Balance of *address* in wei."""
        return int(self.w3.eth.get_balance(Web3.to_checksum_address(address)))

    def gas_price(self) -> int:
        return int(self.w3.eth.gas_price)

    def chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

    def transaction_count(self, address: str) -> int:
        return int(self.w3.eth.get_transaction_count(Web3.to_checksum_address(address)))

    def get_block(self, number: int, full_transactions: bool = True) -> dict | None:
        """Fetch a block and flatten it to plain Python values.

        Transactions are returned as dicts with ``hash``, ``from``, ``to``
        and ``value`` (wei) keys. Returns ``None`` if the node has no such
        block.
        """
        block = self.w3.eth.get_block(number, full_transactions=full_transactions)
        if block is None:
            return None
        transactions = []
        for tx in block.get("transactions") or []:
            if not full_transactions:
                transactions.append({"hash": _hex(tx)})
                continue
            transactions.append({
                "hash": _hex(tx["hash"]),
                "from": tx.get("from"),
                "to": tx.get("to"),
                "value": int(tx.get("value") or 0),
            })
        return {
            "number": int(block["number"]),
            "timestamp": int(block["timestamp"]),
            "transactions": transactions,
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def submit_transfer(
        self,
        private_key: str,
        to_address: str,
        value_wei: int,
        gas: int,
        gas_price: int,
    ) -> str:
        """Sign and broadcast a native-asset transfer.

        Uses a legacy ``gasPrice`` so the fee actually paid is the one the
        caller checked the balance against.

        Returns the transaction hash as a ``0x``-prefixed hex string.
        """
        account = self.w3.eth.account.from_key(private_key)
        tx = {
            "to": Web3.to_checksum_address(to_address),
            "value": value_wei,
            "nonce": self.transaction_count(account.address),
            "chainId": self.chain_id(),
            "gas": gas,
            "gasPrice": gas_price,
        }
        signed = self.w3.eth.account.sign_transaction(tx, private_key)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return _hex(tx_hash)
