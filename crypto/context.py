"""
Wiring of the crypto components.

A ``CryptoContext`` is built once by the application and passed to whatever
needs encryption. Nothing here is global; each context owns its suppliers.
"""

import logging
from typing import Mapping, Optional

from .algorithms import ContentCipher, SignatureScheme
from .envelope import EnvelopeEncryptor
from .key_manager import KeyManager
from .lazy import LazyValue
from .passphrase import PasswordCipherSupplier

logger = logging.getLogger(__name__)


class CryptoContext:
    """Owns the password cipher, the key manager and the envelope engine."""

    def __init__(self, config, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            config: Application configuration (see ``config.Config``)
            environ: Environment holding the shared secret (defaults to ``os.environ``)

        Raises:
            KeyMaterialError: If a configured algorithm name is unknown
        """
        self.content_cipher = ContentCipher.from_name(config.CONTENT_CIPHER)
        self.signature_scheme = SignatureScheme.from_name(config.SIGNATURE_SCHEME)
        self.password_ciphers = PasswordCipherSupplier(config.SHARED_SECRET_VARIABLE, environ)
        self.key_manager = KeyManager(
            config.KEYSTORE_FILE, config.KEYSTORE_PASSWORD, self.password_ciphers
        )
        self._encryptor = LazyValue(self._create_encryptor)

    def encryptor(self) -> EnvelopeEncryptor:
        """Get the envelope engine, loading the key pair on first use."""
        return self._encryptor.get()

    def _create_encryptor(self) -> EnvelopeEncryptor:
        encryptor = EnvelopeEncryptor(
            self.key_manager.get(), self.content_cipher, self.signature_scheme
        )
        logger.info(
            "Envelope encryption ready (%s, %s)",
            self.content_cipher.name,
            self.signature_scheme.name,
        )
        return encryptor
