"""Pydantic models for wallet records and operation results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------

class WalletRecord(BaseModel):
    """A wallet held by the service. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    address: str
    encrypted_private_key: str
    public_key: str
    created_at: datetime = Field(default_factory=_utcnow)

    def to_public_dict(self) -> dict:
        """Everything except the encrypted key."""
        return {
            "address": self.address,
            "publicKey": self.public_key,
            "createdAt": self.created_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

class TransferOutcome(BaseModel):
    """Result of a dispatched native-asset transfer."""

    transaction_hash: str
    from_address: str
    to_address: str
    amount: str

    def to_dict(self) -> dict:
        return {
            "transactionHash": self.transaction_hash,
            "from": self.from_address,
            "to": self.to_address,
            "amount": self.amount,
        }


class BalanceResult(BaseModel):
    address: str
    balance: str
    balance_wei: int

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "balance": self.balance,
            "balanceWei": str(self.balance_wei),
        }


class TransactionSummary(BaseModel):
    """One transaction found while scanning recent blocks."""

    hash: str
    from_address: str
    to_address: Optional[str] = None
    value: str
    timestamp: datetime
    block_number: int

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
            "blockNumber": self.block_number,
        }
