"""Send pipeline for native-asset transfers.

Every step is a hard precondition with its own error. Gas is a fixed
21000 units, which is only right for plain value transfers to accounts;
contract calls would need per-transaction estimation.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from web3 import Web3

from eth_wallet_service.wallet.cipher import KeyCipher
from eth_wallet_service.wallet.endpoints import EndpointSelector
from eth_wallet_service.wallet.errors import (
    CipherError,
    InsufficientBalanceError,
    KeyRecoveryError,
    RpcError,
    SubmissionError,
    ValidationError,
)
from eth_wallet_service.wallet.keystore import address_for_key
from eth_wallet_service.wallet.models import TransferOutcome
from eth_wallet_service.wallet.store import WalletStore
from eth_wallet_service.wallet.validation import (
    is_valid_private_key,
    parse_amount,
    require_address,
)

logger = logging.getLogger("eth_wallet_service.wallet.pipeline")

STANDARD_TRANSFER_GAS = 21_000

# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------

FAILURE_CATEGORIES: dict[str, str] = {
    "insufficient_funds": "Insufficient balance for this transaction",
    "network_error": "Network error. Please check your connection and try again.",
    "nonce_error": "Transaction nonce error. Please try again.",
    "generic": "Transaction failed",
}

# Checked in order; first substring found in the lower-cased description wins.
FAILURE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("insufficient funds", "insufficient_funds"),
    ("network", "network_error"),
    ("nonce", "nonce_error"),
)


def describe_failure(exc: BaseException) -> str:
    """Best description of *exc*, preferring the JSON-RPC error message."""
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, dict):
        error = response.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return str(exc) or type(exc).__name__


def classify_failure(exc: BaseException) -> str:
    """Map a network-layer failure onto a key of :data:`FAILURE_CATEGORIES`.

    Transport failures are recognised by type; everything else falls back
    to matching :data:`FAILURE_PATTERNS` against the description.
    """
    if isinstance(exc, (OSError, TimeoutError)):
        return "network_error"
    description = describe_failure(exc).lower()
    for pattern, category in FAILURE_PATTERNS:
        if pattern in description:
            return category
    return "generic"


def submission_error(exc: BaseException) -> SubmissionError:
    category = classify_failure(exc)
    detail = describe_failure(exc)
    if category == "generic":
        message = f"{FAILURE_CATEGORIES['generic']}: {detail}"
    else:
        message = FAILURE_CATEGORIES[category]
    return SubmissionError(message, category=category, detail=detail)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TransactionPipeline:
    """Validates, prices and dispatches a transfer.

    Parameters
    ----------
    store:
        Wallets whose keys the service holds.
    cipher:
        Cipher the stored keys were sealed with.
    selector:
        Used to obtain a live client for each send.
    candidates, preferred:
        Endpoint list handed to ``selector`` on every call.
    """

    def __init__(
        self,
        store: WalletStore,
        cipher: KeyCipher,
        selector: EndpointSelector,
        candidates: Sequence[str],
        preferred: Optional[str] = None,
    ) -> None:
        self.store = store
        self.cipher = cipher
        self.selector = selector
        self.candidates = list(candidates)
        self.preferred = preferred

    def _resolve_key(self, from_address: str, signing_key: Optional[str]) -> str:
        record = self.store.get(from_address)
        if record is None:
            return signing_key or ""
        try:
            return self.cipher.decrypt(record.encrypted_private_key)
        except CipherError as exc:
            logger.error(f"Failed to decrypt stored key for {from_address}: {exc}")
            raise KeyRecoveryError("Failed to decrypt private key") from exc

    def send(
        self,
        from_address: str,
        to_address: str,
        amount: str,
        signing_key: Optional[str] = None,
    ) -> TransferOutcome:
        """Send *amount* ether from *from_address* to *to_address*.

        If the store holds *from_address*, its key is used and
        *signing_key* is ignored.
        """
        held = bool(from_address) and self.store.contains(from_address)
        if not from_address or not to_address or not str(amount or "").strip():
            raise ValidationError("Missing required fields")
        if not held and not signing_key:
            raise ValidationError("Missing required fields", field="privateKey")

        require_address(from_address, "fromAddress", "sender")
        require_address(to_address, "toAddress", "recipient")
        ether, amount_wei = parse_amount(amount)

        key = self._resolve_key(from_address, signing_key)
        if not is_valid_private_key(key):
            raise ValidationError("Invalid private key format", field="privateKey")
        try:
            signer = address_for_key(key)
        except Exception:
            raise ValidationError("Invalid private key format", field="privateKey") from None
        if signer.lower() != from_address.lower():
            raise ValidationError(
                "Private key does not control the sender address", field="privateKey"
            )

        client = self.selector.select(self.candidates, self.preferred)

        try:
            balance = client.get_balance(from_address)
            gas_price = client.gas_price()
        except Exception as exc:
            logger.error(f"Failed to fetch balance or fee data from {client.endpoint}: {exc}")
            raise RpcError(f"Failed to fetch balance or fee data: {exc}") from exc

        total_cost = amount_wei + STANDARD_TRANSFER_GAS * gas_price
        if balance < total_cost:
            raise InsufficientBalanceError(
                required=Web3.from_wei(total_cost, "ether"),
                available=Web3.from_wei(balance, "ether"),
            )

        try:
            tx_hash = client.submit_transfer(
                private_key=key,
                to_address=to_address,
                value_wei=amount_wei,
                gas=STANDARD_TRANSFER_GAS,
                gas_price=gas_price,
            )
        except Exception as exc:
            error = submission_error(exc)
            logger.error(f"Send transaction error ({error.category}): {error.detail}")
            raise error from exc

        logger.info(f"Sent {ether} ETH from {from_address} to {to_address}: tx={tx_hash}")
        return TransferOutcome(
            transaction_hash=tx_hash,
            from_address=from_address,
            to_address=to_address,
            amount=str(amount).strip(),
        )
