"""Error taxonomy shared by the wallet core, HTTP API and CLI."""

from __future__ import annotations

from decimal import Decimal


class WalletError(Exception):
    """Base class for every failure surfaced to callers.

    ``kind`` is stable and machine-readable; ``status_code`` is the HTTP
    status the API layer answers with.
    """

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WalletError):
    """Malformed input. Never retried."""

    kind = "validation"
    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CipherError(WalletError):
    """Ciphertext blob is malformed or fails authentication."""

    kind = "cipher"
    status_code = 400


class KeyRecoveryError(WalletError):
    """A stored private key could not be decrypted."""

    kind = "key_recovery"
    status_code = 400


class NoAvailableEndpointError(WalletError):
    """Every candidate JSON-RPC endpoint failed its liveness probe."""

    kind = "no_endpoint"
    status_code = 503


class InsufficientBalanceError(WalletError):
    kind = "insufficient_balance"
    status_code = 400

    def __init__(self, required: Decimal, available: Decimal, symbol: str = "ETH") -> None:
        super().__init__(
            f"Insufficient balance. Need {required} {symbol}, have {available} {symbol}"
        )
        self.required = required
        self.available = available


class SubmissionError(WalletError):
    """The node rejected (or never received) a signed transfer.

    ``category`` is one of the values in
    :data:`eth_wallet_service.wallet.pipeline.FAILURE_CATEGORIES`.
    """

    kind = "submission"
    status_code = 502

    def __init__(self, message: str, category: str, detail: str = "") -> None:
        super().__init__(message)
        self.category = category
        self.detail = detail


class RpcError(WalletError):
    """A read-only call failed on an endpoint that had passed its probe."""

    kind = "rpc"
    status_code = 502
