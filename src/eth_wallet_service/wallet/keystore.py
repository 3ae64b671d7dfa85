"""Key pair generation using eth-account."""

from __future__ import annotations

from eth_account import Account
from eth_keys import keys
from web3 import Web3

from eth_wallet_service.wallet.cipher import KeyCipher
from eth_wallet_service.wallet.models import WalletRecord


def public_key_hex(private_key: bytes) -> str:
    """Uncompressed SEC1 public key (``0x04`` prefix) for *private_key*."""
    public = keys.PrivateKey(private_key).public_key
    return "0x04" + public.to_bytes().hex()


def create_wallet(cipher: KeyCipher) -> WalletRecord:
    """Generate a new Ethereum key pair and seal the private key.

    Parameters
    ----------
    cipher:
        Cipher used to encrypt the private key before it leaves this
        function.

    Returns
    -------
    WalletRecord
        The checksummed address, the public key and the encrypted private
        key. The plaintext key is not retained anywhere.
    """
    acct = Account.create()
    return WalletRecord(
        address=acct.address,
        encrypted_private_key=cipher.encrypt(Web3.to_hex(acct.key)),
        public_key=public_key_hex(bytes(acct.key)),
    )


def address_for_key(private_key: str) -> str:
    """Checksummed address controlled by a ``0x``-prefixed private key."""
    return Account.from_key(private_key).address
