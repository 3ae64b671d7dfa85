"""Keyed storage of wallet records."""

from __future__ import annotations

import threading
from typing import Protocol

from web3 import Web3

from eth_wallet_service.wallet.models import WalletRecord


def normalize_address(address: str) -> str:
    """Checksum *address* so lookups ignore hex letter case."""
    return Web3.to_checksum_address(address)


class WalletStore(Protocol):
    """What the rest of the service needs from a wallet store."""

    def put(self, address: str, record: WalletRecord) -> None: ...

    def get(self, address: str) -> WalletRecord | None: ...

    def contains(self, address: str) -> bool: ...

    def delete(self, address: str) -> bool: ...

    def addresses(self) -> list[str]: ...


class InMemoryWalletStore:
    """Process-local store. Contents are lost on restart.

    Each operation takes the lock only for the duration of the map access;
    nothing here touches the network.
    """

    def __init__(self) -> None:
        self._records: dict[str, WalletRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(address: str) -> str | None:
        try:
            return normalize_address(address)
        except (ValueError, TypeError):
            return None

    def put(self, address: str, record: WalletRecord) -> None:
        key = self._key(address)
        if key is None:
            raise ValueError(f"Not an Ethereum address: {address!r}")
        with self._lock:
            self._records[key] = record

    def get(self, address: str) -> WalletRecord | None:
        key = self._key(address)
        if key is None:
            return None
        with self._lock:
            return self._records.get(key)

    def contains(self, address: str) -> bool:
        return self.get(address) is not None

    def delete(self, address: str) -> bool:
        """Remove the record for *address*. Returns whether one existed."""
        key = self._key(address)
        if key is None:
            return False
        with self._lock:
            return self._records.pop(key, None) is not None

    def addresses(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
