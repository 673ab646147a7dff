"""
Cryptographic module for envelope encryption.

Handles:
- System key pair loading (RSA, PKCS#12 key store)
- Password-based decryption of configuration secrets (Argon2id + AES-256-GCM)
- Envelope encryption of data streams (AES content key wrapped with RSA)
- Signing and verification (RSASSA-PKCS1-v1_5)
"""

from .algorithms import ContentCipher, SignatureScheme
from .context import CryptoContext
from .envelope import EnvelopeEncryptor
from .errors import CryptoError, DecodingError, EncryptionException, KeyMaterialError
from .hex_utils import bytes_to_hex, hex_to_bytes
from .key_manager import KeyManager, KeyPair, generate_keystore
from .passphrase import PassphraseDeriver, PasswordCipher, PasswordCipherSupplier
from .signing import Signer

__all__ = [
    "ContentCipher",
    "SignatureScheme",
    "CryptoContext",
    "EnvelopeEncryptor",
    "CryptoError",
    "DecodingError",
    "EncryptionException",
    "KeyMaterialError",
    "bytes_to_hex",
    "hex_to_bytes",
    "KeyManager",
    "KeyPair",
    "generate_keystore",
    "PassphraseDeriver",
    "PasswordCipher",
    "PasswordCipherSupplier",
    "Signer",
]
