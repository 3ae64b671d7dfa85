"""High-level wallet service used by the HTTP API and CLI."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from web3 import Web3

from eth_wallet_service.config import ServiceConfig
from eth_wallet_service.wallet.cipher import KeyCipher
from eth_wallet_service.wallet.endpoints import EndpointSelector
from eth_wallet_service.wallet.errors import CipherError, KeyRecoveryError, RpcError
from eth_wallet_service.wallet.keystore import create_wallet
from eth_wallet_service.wallet.models import (
    BalanceResult,
    TransactionSummary,
    TransferOutcome,
    WalletRecord,
)
from eth_wallet_service.wallet.pipeline import TransactionPipeline
from eth_wallet_service.wallet.store import InMemoryWalletStore, WalletStore
from eth_wallet_service.wallet.validation import require_address

logger = logging.getLogger("eth_wallet_service.wallet.manager")


class WalletService:
    """Orchestrates store, cipher, endpoint selection and the send pipeline."""

    def __init__(
        self,
        cipher: KeyCipher,
        candidates: list[str],
        preferred: Optional[str] = None,
        store: WalletStore | None = None,
        selector: EndpointSelector | None = None,
        history_blocks: int = 5,
        history_limit: int = 20,
    ) -> None:
        self.cipher = cipher
        self.candidates = list(candidates)
        self.preferred = preferred
        self.store = store if store is not None else InMemoryWalletStore()
        self.selector = selector or EndpointSelector()
        self.history_blocks = history_blocks
        self.history_limit = history_limit
        self.pipeline = TransactionPipeline(
            store=self.store,
            cipher=self.cipher,
            selector=self.selector,
            candidates=self.candidates,
            preferred=self.preferred,
        )

    @classmethod
    def from_config(
        cls,
        config: ServiceConfig,
        store: WalletStore | None = None,
        selector: EndpointSelector | None = None,
    ) -> WalletService:
        key = config.security.encryption_key
        cipher = KeyCipher(key) if key else KeyCipher.generate()
        return cls(
            cipher=cipher,
            candidates=config.rpc.candidates(),
            preferred=config.rpc.url,
            store=store,
            selector=selector or EndpointSelector(timeout=config.rpc.timeout_seconds),
            history_blocks=config.history.scan_blocks,
            history_limit=config.history.max_results,
        )

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    def create_wallet(self) -> WalletRecord:
        """Generate a key pair and keep its encrypted private key."""
        record = create_wallet(self.cipher)
        self.store.put(record.address, record)
        logger.info(f"Wallet {record.address} created.")
        return record

    def delete_wallet(self, address: str) -> bool:
        """Forget a held wallet. Returns whether it was held."""
        require_address(address, "address", "Ethereum")
        removed = self.store.delete(address)
        if removed:
            logger.info(f"Wallet {address} deleted.")
        return removed

    def rotate_key(self, new_key: bytes | str) -> int:
        """Re-encrypt every held key under *new_key* and switch to it.

        All records are re-encrypted before anything is written, so a
        record that cannot be decrypted leaves the store untouched.

        Returns the number of records re-encrypted.
        """
        target = KeyCipher(new_key)
        rotated: list[WalletRecord] = []
        for address in self.store.addresses():
            record = self.store.get(address)
            if record is None:
                continue
            try:
                blob = self.cipher.reencrypt(record.encrypted_private_key, target)
            except CipherError as exc:
                raise KeyRecoveryError(f"Failed to decrypt private key for {address}") from exc
            rotated.append(record.model_copy(update={"encrypted_private_key": blob}))

        for record in rotated:
            self.store.put(record.address, record)
        self.cipher = target
        self.pipeline.cipher = target
        logger.info(f"Encryption key rotated ({len(rotated)} wallets re-encrypted).")
        return len(rotated)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> BalanceResult:
        require_address(address, "address", "Ethereum")
        client = self.selector.select(self.candidates, self.preferred)
        try:
            balance_wei = client.get_balance(address)
        except Exception as exc:
            logger.error(f"Balance fetch error on {client.endpoint}: {exc}")
            raise RpcError(f"Failed to fetch balance: {exc}") from exc
        return BalanceResult(
            address=address,
            balance=str(Web3.from_wei(balance_wei, "ether")),
            balance_wei=balance_wei,
        )

    def get_transactions(self, address: str) -> list[TransactionSummary]:
        """Transactions touching *address* in the most recent blocks.

        Scans ``history_blocks`` blocks back from the chain head, newest
        first, and returns at most ``history_limit`` matches. A block that
        fails to load is logged and skipped.
        """
        require_address(address, "address", "Ethereum")
        client = self.selector.select(self.candidates, self.preferred)
        try:
            head = client.block_number()
        except Exception as exc:
            logger.error(f"Block number fetch error on {client.endpoint}: {exc}")
            raise RpcError(f"Failed to fetch transactions: {exc}") from exc
        wanted = address.lower()

        matches: list[TransactionSummary] = []
        for offset in range(min(self.history_blocks, head + 1)):
            number = head - offset
            try:
                block = client.get_block(number, full_transactions=True)
            except Exception as e:
                logger.warning(f"Error fetching block {number}: {e}")
                continue
            if not block:
                continue
            timestamp = datetime.fromtimestamp(block["timestamp"], tz=timezone.utc)
            for tx in block.get("transactions", []):
                sender = tx.get("from") or ""
                recipient = tx.get("to") or ""
                if wanted not in (sender.lower(), recipient.lower()):
                    continue
                matches.append(TransactionSummary(
                    hash=tx["hash"],
                    from_address=sender,
                    to_address=recipient or None,
                    value=str(Web3.from_wei(tx.get("value") or 0, "ether")),
                    timestamp=timestamp,
                    block_number=block["number"],
                ))

        return matches[: self.history_limit]

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    def send(
        self,
        from_address: str,
        to_address: str,
        amount: str,
        private_key: Optional[str] = None,
    ) -> TransferOutcome:
        return self.pipeline.send(from_address, to_address, amount, private_key)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health(self) -> dict:
        """Process liveness. Does not probe any endpoint."""
        return {
            "success": True,
            "message": "Server is running",
            "wallets": len(self.store.addresses()),
            "endpoints": len(self.candidates),
        }
