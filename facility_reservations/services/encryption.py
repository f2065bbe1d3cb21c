"""
Encryption of personal data columns.

Resident and staff names, emails and addresses are stored as Fernet
tokens. The key is derived from the ENCRYPTION_KEY setting.
"""

import base64
import hashlib
import logging
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from facility_reservations.config import get_settings

logger = logging.getLogger(__name__)


class DecryptionError(Exception):
    """Raised when a value is not a valid ciphertext for the configured key."""


def derive_key(secret: str) -> bytes:
    """Derive a Fernet key (32 url-safe base64 bytes) from an arbitrary secret."""
    key_bytes = secret.encode()

    # Fernet needs exactly 32 bytes
    if len(key_bytes) != 32:
        key_bytes = hashlib.sha256(key_bytes).digest()

    return base64.urlsafe_b64encode(key_bytes)


class EncryptionService:
    """Symmetric encrypt/decrypt of short text values."""

    def __init__(self, secret: str):
        self.fernet = Fernet(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt text and return the token as a string."""
        return self.fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a token produced by encrypt().

        Raises:
            DecryptionError: If the token is malformed or was encrypted with another key
        """
        try:
            return self.fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError, TypeError, AttributeError) as e:
            raise DecryptionError("Value could not be decrypted") from e

    def safe_decrypt(self, ciphertext: Optional[str], field: str = "value") -> Optional[str]:
        """
        Decrypt a value, degrading to None instead of failing.

        Used when assembling responses so a single corrupt column never
        aborts the surrounding request.
        """
        if not ciphertext:
            return None
        try:
            return self.decrypt(ciphertext)
        except DecryptionError:
            logger.warning(f"Could not decrypt {field}; returning null")
            return None


@lru_cache()
def get_encryption_service() -> EncryptionService:
    """Get the process-wide EncryptionService built from settings."""
    return EncryptionService(get_settings().encryption_key)
