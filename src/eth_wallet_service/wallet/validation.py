"""Input checks shared by the send pipeline and the read-only queries."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from web3 import Web3

from eth_wallet_service.wallet.errors import ValidationError

_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_valid_address(value: object) -> bool:
    """``0x`` + 40 hex chars, with a valid checksum if mixed-case."""
    return isinstance(value, str) and value.startswith("0x") and Web3.is_address(value)


def require_address(value: object, field: str, label: str) -> str:
    if not is_valid_address(value):
        raise ValidationError(f"Invalid {label} address", field=field)
    return value  # type: ignore[return-value]


def parse_amount(value: object) -> tuple[Decimal, int]:
    """Parse an ether amount into ``(ether, wei)``.

    Raises :class:`ValidationError` unless the amount is a finite number
    worth at least one wei.
    """
    try:
        ether = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid amount", field="amount") from None
    if not ether.is_finite() or ether <= 0:
        raise ValidationError("Invalid amount", field="amount")
    try:
        wei = Web3.to_wei(ether, "ether")
    except ValueError:
        raise ValidationError("Invalid amount", field="amount") from None
    if wei <= 0:
        raise ValidationError("Invalid amount", field="amount")
    return ether, wei


def is_valid_private_key(value: object) -> bool:
    return isinstance(value, str) and bool(_PRIVATE_KEY_RE.match(value))
