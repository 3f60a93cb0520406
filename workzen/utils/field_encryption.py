"""
WorkZen - Field Encryption

AES-256-CBC field-level encryption for PII (PAN, Aadhaar, IFSC, bank
account numbers) plus display masking helpers.

Token format:
    {hex(iv)}:{hex(ciphertext)}

The 32-byte key is derived once per process from the configured secret with
HKDF-SHA256 under its own context string, so it is independent of the JWT
signing key even when both come from the same configured value.
"""

import logging
import secrets
from functools import lru_cache
from typing import Optional

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from workzen.config import settings
from workzen.utils.error_handling import ConfigurationException

logger = logging.getLogger(__name__)

KEY_CONTEXT = b"workzen-field-encryption-v1"
IV_LENGTH = 16


class FieldDecryptionError(ValueError):
    """Raised when a token is malformed or was encrypted under another key."""


class EncryptionConfigurationError(ConfigurationException):
    """Raised when no encryption secret is configured in production."""


def derive_key(secret: str) -> bytes:
    """Derive a 256-bit AES key from a configured secret."""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=KEY_CONTEXT,
        backend=default_backend(),
    )
    return hkdf.derive(secret.encode("utf-8"))


class FieldEncryptionCodec:
    """Symmetric encrypt/decrypt of single string fields."""

    def __init__(self, key: bytes):
        if len(key) != 32:
            raise ValueError("Field encryption key must be 32 bytes")
        self._key = key

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None:
            return None

        iv = secrets.token_bytes(IV_LENGTH)
        cipher = Cipher(algorithms.AES(self._key), modes.CBC(iv), backend=default_backend())
        encryptor = cipher.encryptor()

        padder = padding.PKCS7(128).padder()
        padded = padder.update(str(plaintext).encode("utf-8")) + padder.finalize()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: Optional[str]) -> Optional[str]:
        """
        Decrypt a token produced by encrypt().

        Raises:
            FieldDecryptionError: If the token is malformed or the key is wrong
        """
        if token is None:
            return None

        parts = token.split(":")
        if len(parts) != 2:
            raise FieldDecryptionError("Malformed encrypted value")

        try:
            iv = bytes.fromhex(parts[0])
            ciphertext = bytes.fromhex(parts[1])
        except ValueError as e:
            raise FieldDecryptionError("Malformed encrypted value") from e

        if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % 16:
            raise FieldDecryptionError("Malformed encrypted value")

        try:
            cipher = Cipher(algorithms.AES(self._key), modes.CBC(iv), backend=default_backend())
            decryptor = cipher.decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(128).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except ValueError as e:
            # Bad padding or non-UTF-8 output: wrong key or tampered data
            raise FieldDecryptionError(f"Decryption failed: {e}") from e


@lru_cache()
def get_field_codec() -> FieldEncryptionCodec:
    """
    Process-wide codec, derived once from settings.

    Raises:
        EncryptionConfigurationError: In production when no secret is configured
    """
    secret = settings.field_encryption_key_material
    if not secret:
        if settings.is_production:
            raise EncryptionConfigurationError(
                "FIELD_ENCRYPTION_SECRET (or JWT_SECRET_KEY) must be set in production"
            )
        logger.warning(
            "No field encryption secret configured; deriving key from SECRET_KEY "
            f"({settings.app_env} only)"
        )
        secret = settings.secret_key
    return FieldEncryptionCodec(derive_key(secret))


def encrypt(plaintext: Optional[str]) -> Optional[str]:
    """Encrypt a PII value with the process-wide key."""
    return get_field_codec().encrypt(plaintext)


def decrypt(token: Optional[str]) -> Optional[str]:
    """Decrypt a PII value with the process-wide key."""
    return get_field_codec().decrypt(token)


# ===========================================
# DISPLAY MASKING (never persist the result)
# ===========================================

def mask_pan(pan: Optional[str]) -> Optional[str]:
    """ABCDE1234F -> ABCDXXXX4F"""
    if not pan or len(pan) < 8:
        return pan
    return pan[:4] + "XXXX" + pan[8:]


def mask_aadhaar(aadhaar: Optional[str]) -> Optional[str]:
    """1234 5678 9012 -> XXXX XXXX 9012"""
    if not aadhaar:
        return aadhaar
    cleaned = aadhaar.replace(" ", "")
    if len(cleaned) < 12:
        return aadhaar
    return "XXXX XXXX " + cleaned[8:]


def mask_account_number(account_number: Optional[str]) -> Optional[str]:
    """1234567890123456 -> XXXX XXXX 3456"""
    if not account_number or len(account_number) < 4:
        return account_number
    return "XXXX XXXX " + account_number[-4:]
