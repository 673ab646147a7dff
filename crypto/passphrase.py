"""
Password-based encryption of configuration secrets using Argon2id.

A shared secret (read from an environment variable) is stretched into an
AES-256-GCM key. This is only used for a handful of configuration values,
such as the key store password, which are encrypted offline.
"""

import os
import base64
import binascii
import logging
from typing import Mapping, Optional

from argon2.low_level import hash_secret_raw, Type
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import EncryptionException
from .hex_utils import hex_to_bytes, is_hex
from .lazy import LazyValue

logger = logging.getLogger(__name__)


class PassphraseDeriver:
    """Derives encryption keys from passphrases using Argon2id."""

    # Argon2id parameters (OWASP recommended)
    TIME_COST = 3  # iterations
    MEMORY_COST = 65536  # 64 MB
    PARALLELISM = 4
    HASH_LEN = 32  # 256 bits for AES-256
    SALT_LEN = 16  # 128 bits

    @classmethod
    def derive_key(cls, passphrase: str, salt: bytes | None = None) -> tuple[bytes, bytes]:
        """
        Derive a 256-bit key from a passphrase using Argon2id.

        The same passphrase and salt always give the same key.

        Args:
            passphrase: The shared secret
            salt: Optional salt bytes. If None, generates a random salt.

        Returns:
            Tuple of (derived_key, salt)
        """
        if salt is None:
            salt = os.urandom(cls.SALT_LEN)

        derived_key = hash_secret_raw(
            secret=passphrase.encode("utf-8"),
            salt=salt,
            time_cost=cls.TIME_COST,
            memory_cost=cls.MEMORY_COST,
            parallelism=cls.PARALLELISM,
            hash_len=cls.HASH_LEN,
            type=Type.ID,  # Argon2id
        )

        return derived_key, salt


class PasswordCipher:
    """
    Encrypts and decrypts configuration values under a shared secret.

    Format: base64(salt (16) + nonce (12) + ciphertext). Decryption also
    accepts the same bytes hex encoded.
    """

    NONCE_LEN = 12

    def __init__(self, shared_secret: str):
        if not shared_secret:
            raise EncryptionException("Shared secret must not be empty")
        self._shared_secret = shared_secret

    def encrypt(self, plaintext: str, charset: str) -> str:
        """
        Encrypt a configuration value. Used offline by administrators.

        Args:
            plaintext: The value to protect
            charset: Encoding used to turn the value into bytes

        Returns:
            Base64 text safe to store in configuration
        """
        try:
            data = plaintext.encode(charset)
            key, salt = PassphraseDeriver.derive_key(self._shared_secret)
            nonce = os.urandom(self.NONCE_LEN)
            ciphertext = AESGCM(key).encrypt(nonce, data, None)
        except (LookupError, UnicodeError, ValueError) as e:
            raise EncryptionException("Failed to encrypt property") from e
        return base64.b64encode(salt + nonce + ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str, charset: str) -> str:
        """
        Decrypt a configuration value produced by ``encrypt``.

        Raises:
            EncryptionException: Wrong shared secret, corrupt or malformed value
        """
        try:
            blob = self._decode(ciphertext.strip())
            header_len = PassphraseDeriver.SALT_LEN + self.NONCE_LEN
            if len(blob) <= header_len:
                raise ValueError(f"Encrypted value too short: {len(blob)} bytes")
            salt = blob[:PassphraseDeriver.SALT_LEN]
            nonce = blob[PassphraseDeriver.SALT_LEN:header_len]
            key, _ = PassphraseDeriver.derive_key(self._shared_secret, salt)
            plaintext = AESGCM(key).decrypt(nonce, blob[header_len:], None)
            return plaintext.decode(charset)
        except (InvalidTag, LookupError, UnicodeError, ValueError) as e:
            raise EncryptionException("Failed to decrypt property") from e

    @staticmethod
    def _decode(text: str) -> bytes:
        if is_hex(text):
            return hex_to_bytes(text)
        try:
            return base64.b64decode(text, validate=True)
        except binascii.Error as e:
            raise ValueError("Encrypted value is neither hex nor base64") from e


class PasswordCipherSupplier:
    """
    Provides a single ``PasswordCipher`` keyed by an environment variable.

    The variable is read on the first ``get()``; a missing or empty value
    raises ``EncryptionException`` there and then.
    """

    def __init__(self, shared_secret_variable: str, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            shared_secret_variable: Name of the environment variable holding the secret
            environ: Environment to read from (defaults to ``os.environ``)
        """
        self.shared_secret_variable = shared_secret_variable
        self._environ = os.environ if environ is None else environ
        self._cipher = LazyValue(self._create)

    def get(self) -> PasswordCipher:
        return self._cipher.get()

    def _create(self) -> PasswordCipher:
        shared_secret = self._environ.get(self.shared_secret_variable)
        if not shared_secret:
            raise EncryptionException(
                f"Shared secret environment variable {self.shared_secret_variable} is not set"
            )
        logger.info("Password cipher initialised from %s", self.shared_secret_variable)
        return PasswordCipher(shared_secret)
