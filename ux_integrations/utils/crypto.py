"""Cryptographic utilities for integration config encryption."""

from functools import lru_cache
from typing import Optional
import base64

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# Stored ciphertexts must stay decryptable across restarts, so the salt is fixed.
DEFAULT_SALT = b"ux-integrations.config.v1"

ENCRYPTED_PREFIX = "enc:"


class DecryptionError(Exception):
    """Stored value could not be decrypted with the configured key."""
    pass


@lru_cache(maxsize=8)
def generate_key(password: str, salt: Optional[bytes] = None) -> bytes:
    """Generate encryption key from password."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt or DEFAULT_SALT,
        iterations=100000,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode()))


def encrypt_value(value: str, encryption_key: str) -> str:
    """Encrypt a string, tagging it so it can be recognized on load."""
    f = Fernet(generate_key(encryption_key))
    return ENCRYPTED_PREFIX + f.encrypt(value.encode()).decode()


def decrypt_value(encrypted_value: str, encryption_key: str) -> str:
    """Decrypt a value produced by `encrypt_value`."""
    token = encrypted_value[len(ENCRYPTED_PREFIX):] if is_encrypted(encrypted_value) else encrypted_value
    f = Fernet(generate_key(encryption_key))
    try:
        return f.decrypt(token.encode()).decode()
    except InvalidToken as e:
        raise DecryptionError("Stored integration config could not be decrypted") from e


def is_encrypted(value: str) -> bool:
    return value.startswith(ENCRYPTED_PREFIX)
