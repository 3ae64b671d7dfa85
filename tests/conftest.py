"""Shared fixtures: fake JSON-RPC clients instead of a live node."""

from __future__ import annotations

import pytest
from eth_account import Account
from web3 import Web3

from eth_wallet_service.wallet.cipher import KeyCipher
from eth_wallet_service.wallet.endpoints import EndpointSelector
from eth_wallet_service.wallet.manager import WalletService
from eth_wallet_service.wallet.store import InMemoryWalletStore

SENDER_KEY = "0x" + "11" * 32
SENDER = Account.from_key(SENDER_KEY).address
RECIPIENT = "0x" + "22" * 20
GAS_PRICE = Web3.to_wei(10, "gwei")
TX_HASH = "0x" + "ab" * 32


class FakeChainClient:
    """Stands in for :class:`ChainClient`; records what it was asked to do."""

    def __init__(
        self,
        endpoint: str = "http://fake",
        *,
        alive: bool = True,
        height: int = 100,
        balances: dict[str, int] | None = None,
        gas_price: int = GAS_PRICE,
        blocks: dict[int, dict] | None = None,
        failing_blocks: tuple[int, ...] = (),
        submit_error: Exception | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.alive = alive
        self.height = height
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}
        self._gas_price = gas_price
        self.blocks = blocks or {}
        self.failing_blocks = failing_blocks
        self.submit_error = submit_error
        self.submitted: list[dict] = []
        self.fetched_blocks: list[int] = []

    def block_number(self) -> int:
        if not self.alive:
            raise ConnectionError(f"connection refused: {self.endpoint}")
        return self.height

    def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    def gas_price(self) -> int:
        return self._gas_price

    def get_block(self, number: int, full_transactions: bool = True) -> dict | None:
        self.fetched_blocks.append(number)
        if number in self.failing_blocks:
            raise TimeoutError(f"block {number} timed out")
        return self.blocks.get(number)

    def submit_transfer(self, **kwargs) -> str:
        self.submitted.append(kwargs)
        if self.submit_error is not None:
            raise self.submit_error
        return TX_HASH


class RecordingConnector:
    """Connector for :class:`EndpointSelector` backed by fake clients."""

    def __init__(self, clients: dict[str, FakeChainClient]) -> None:
        self.clients = clients
        self.attempts: list[str] = []

    def __call__(self, endpoint: str, timeout: float) -> FakeChainClient:
        self.attempts.append(endpoint)
        if endpoint not in self.clients:
            raise ConnectionError(f"unknown host {endpoint}")
        return self.clients[endpoint]


def make_block(number: int, transactions: list[dict], timestamp: int = 1_700_000_000) -> dict:
    return {"number": number, "timestamp": timestamp + number, "transactions": transactions}


@pytest.fixture
def cipher() -> KeyCipher:
    return KeyCipher(bytes(range(32)))


@pytest.fixture
def client() -> FakeChainClient:
    return FakeChainClient("http://primary")


@pytest.fixture
def connector(client: FakeChainClient) -> RecordingConnector:
    return RecordingConnector({client.endpoint: client})


@pytest.fixture
def service(cipher: KeyCipher, connector: RecordingConnector) -> WalletService:
    return WalletService(
        cipher=cipher,
        candidates=list(connector.clients),
        store=InMemoryWalletStore(),
        selector=EndpointSelector(connect=connector, timeout=1.0),
    )
