"""Encryption at rest for private keys.

Blobs are AES-256-GCM ciphertexts (tag appended) prefixed with the 128-bit
IV used to produce them::

    hex(iv) + ":" + hex(ciphertext || tag)

The IV is a fixed-length prefix, so ``decrypt`` never splits on colons
inside the ciphertext part.
"""

from __future__ import annotations

import logging
import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from eth_wallet_service.wallet.errors import CipherError

logger = logging.getLogger("eth_wallet_service.wallet.cipher")

KEY_BYTES = 32
IV_BYTES = 16
SEPARATOR = ":"
_IV_HEX_LEN = IV_BYTES * 2


class KeyCipher:
    """Symmetric cipher bound to a single 256-bit secret.

    Parameters
    ----------
    key:
        The raw 32-byte secret, or its 64-character hex encoding.
    """

    def __init__(self, key: bytes | str) -> None:
        if isinstance(key, str):
            try:
                key = bytes.fromhex(key.removeprefix("0x"))
            except ValueError as exc:
                raise ValueError("Encryption key must be hex-encoded") from exc
        if len(key) != KEY_BYTES:
            raise ValueError(
                f"Encryption key must be {KEY_BYTES} bytes ({KEY_BYTES * 2} hex chars), "
                f"got {len(key)} bytes"
            )
        self._aes = AESGCM(key)

    @classmethod
    def generate(cls) -> KeyCipher:
        """Create a cipher with a fresh in-memory key.

        Anything encrypted with it is unrecoverable once the process exits.
        """
        logger.warning(
            "No encryption key configured; generated an ephemeral one. "
            "Stored wallets will be unrecoverable after a restart."
        )
        return cls(secrets.token_bytes(KEY_BYTES))

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_BYTES)
        ciphertext = self._aes.encrypt(iv, plaintext.encode("utf-8"), None)
        return iv.hex() + SEPARATOR + ciphertext.hex()

    def decrypt(self, blob: str) -> str:
        """Recover the plaintext of *blob*.

        Raises
        ------
        CipherError
            If the blob is malformed or was not produced under this key.
        """
        if len(blob) <= _IV_HEX_LEN or blob[_IV_HEX_LEN] != SEPARATOR:
            raise CipherError("Malformed ciphertext: expected 32 hex IV chars and ':'")
        try:
            iv = bytes.fromhex(blob[:_IV_HEX_LEN])
            ciphertext = bytes.fromhex(blob[_IV_HEX_LEN + 1:])
        except ValueError as exc:
            raise CipherError("Malformed ciphertext: not hex-encoded") from exc

        try:
            plaintext = self._aes.decrypt(iv, ciphertext, None)
        except InvalidTag as exc:
            raise CipherError("Ciphertext failed authentication (wrong key?)") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CipherError("Decrypted payload is not valid UTF-8") from exc

    def reencrypt(self, blob: str, target: KeyCipher) -> str:
        """Decrypt *blob* under this key and encrypt it under *target*."""
        return target.encrypt(self.decrypt(blob))
