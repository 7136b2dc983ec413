"""Credential vault for integration secrets.

Encrypts and decrypts per-integration credential blobs with AES-256-GCM.
The key is the SHA-256 digest of the operator-configured secret, so the
same secret always yields the same key. Every encryption draws a fresh
12-byte nonce, and the durable blob is ``hex(nonce):hex(ciphertext)``
(the GCM tag is the last 16 bytes of the ciphertext).

There is no re-keying: changing the configured secret makes every
existing blob undecryptable, and callers must ask users to re-enter
their credentials.
"""

from __future__ import annotations

import binascii
import hashlib
import json
import os
from dataclasses import dataclass, field
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from conduit.exceptions import ConfigurationError, CredentialError
from conduit.settings import Settings, get_settings

NONCE_LENGTH = 12
TAG_LENGTH = 16
BLOB_SEPARATOR = ":"


def derive_key(secret: str) -> bytes:
    """Derive a 32-byte AES key from an arbitrary secret string.

    Args:
        secret: The operator-configured secret.

    Returns:
        The SHA-256 digest of the secret.
    """
    return hashlib.sha256(secret.encode()).digest()


@dataclass(frozen=True)
class CredentialVault:
    """Immutable, stateless encrypt/decrypt service.

    Construct it once at process start (``CredentialVault.from_settings()``)
    and pass it to whatever needs it. Instances hold only the derived key,
    so they are safe to share between concurrent tasks.
    """

    key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.key) != 32:
            raise ConfigurationError("Credential vault key must be 32 bytes")

    @classmethod
    def from_secret(cls, secret: str) -> CredentialVault:
        """Build a vault from a raw secret string."""
        if not secret:
            raise ConfigurationError(
                "ENCRYPTION_KEY is not set. Configure CREDENTIAL_ENCRYPTION_KEY "
                "before starting Conduit."
            )
        return cls(key=derive_key(secret))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CredentialVault:
        """Build the process vault from settings.

        Raises:
            ConfigurationError: If no encryption key is configured.
        """
        settings = settings or get_settings()
        return cls.from_secret(settings.credential_encryption_key.get_secret_value())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string into a ``nonce:ciphertext`` hex blob."""
        nonce = os.urandom(NONCE_LENGTH)
        ciphertext = AESGCM(self.key).encrypt(nonce, plaintext.encode("utf-8"), None)
        return f"{nonce.hex()}{BLOB_SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, blob: str) -> str:
        """Decrypt a blob produced by :meth:`encrypt`.

        Raises:
            CredentialError: ``reason="malformed"`` if the blob is not two
                hex fields of the right size, ``reason="integrity"`` if
                authentication fails (tampered data or a different key).
        """
        nonce, ciphertext = _split_blob(blob)
        try:
            plaintext = AESGCM(self.key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise CredentialError(
                "Credential blob failed integrity check (tampered or encrypted with another key)",
                reason="integrity",
            ) from e
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialError("Decrypted credentials are not UTF-8", reason="malformed") from e

    def encrypt_json(self, payload: dict[str, Any]) -> str:
        """Serialize a credential mapping and encrypt it."""
        return self.encrypt(json.dumps(payload, sort_keys=True))

    def decrypt_json(self, blob: str) -> dict[str, Any]:
        """Decrypt a blob and parse it as a JSON object.

        Raises:
            CredentialError: If decryption fails or the plaintext is not a JSON object.
        """
        plaintext = self.decrypt(blob)
        try:
            payload = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise CredentialError("Decrypted credentials are not valid JSON", reason="malformed") from e
        if not isinstance(payload, dict):
            raise CredentialError("Decrypted credentials are not a JSON object", reason="malformed")
        return payload


def _split_blob(blob: str) -> tuple[bytes, bytes]:
    """Parse ``hex(nonce):hex(ciphertext)`` into raw bytes."""
    if not isinstance(blob, str) or blob.count(BLOB_SEPARATOR) != 1:
        raise CredentialError("Invalid encrypted credentials format", reason="malformed")

    nonce_hex, ciphertext_hex = blob.split(BLOB_SEPARATOR)
    try:
        nonce = bytes.fromhex(nonce_hex)
        ciphertext = bytes.fromhex(ciphertext_hex)
    except (ValueError, binascii.Error) as e:
        raise CredentialError("Encrypted credentials are not hex encoded", reason="malformed") from e

    if len(nonce) != NONCE_LENGTH or len(ciphertext) < TAG_LENGTH:
        raise CredentialError("Encrypted credentials have the wrong length", reason="malformed")
    return nonce, ciphertext
