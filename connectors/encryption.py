"""
Token encryption: encrypt / decrypt vendor tokens before they are stored.

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the ``cryptography`` library.
The key comes from ``config.token_encryption_key`` (env var:
``TOKEN_ENCRYPTION_KEY``). Without a key the cipher is a pass-through and a
warning is logged once. Generate a key with::

    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.fernet import Fernet

from config.settings import config

logger = logging.getLogger(__name__)


class TokenCipher:
    """Fernet wrapper; ``key=None`` or ``""`` disables encryption."""

    def __init__(self, key: Optional[str] = None) -> None:
        self._fernet: Optional[Fernet] = None
        if key:
            self._fernet = Fernet(key.encode())
            logger.info("Token encryption enabled (Fernet/AES-128-CBC)")
        else:
            logger.warning(
                "TOKEN_ENCRYPTION_KEY not set; vendor tokens will be stored as plaintext"
            )

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None or self._fernet is None:
            return plaintext
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """Raises ``cryptography.fernet.InvalidToken`` on tampered input."""
        if ciphertext is None or self._fernet is None:
            return ciphertext
        return self._fernet.decrypt(ciphertext.encode()).decode()


def cipher_from_config() -> TokenCipher:
    return TokenCipher(config.token_encryption_key)
