"""
Supported algorithm configurations.

Only the combinations listed here are accepted; names from configuration are
resolved through ``from_name`` and rejected if unknown.

Envelope header note: the wrapped content key length is written as a single
byte holding ``length / 8``. The RSA modulus therefore has to be a whole
number of 8-byte blocks and no longer than 255 * 8 = 2040 bytes (16320 bits).
Changing that would break every envelope already written.
"""

from enum import Enum

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import KeyMaterialError

WRAPPED_KEY_LENGTH_SCALE = 8
MAX_WRAPPED_KEY_LENGTH = 255 * WRAPPED_KEY_LENGTH_SCALE


class ContentCipher(Enum):
    """Symmetric cipher for the envelope payload (AES/ECB/PKCS7)."""

    AES_128 = 128
    AES_256 = 256

    @property
    def key_length(self) -> int:
        """Content key length in bytes."""
        return self.value // 8

    @classmethod
    def from_name(cls, name: str) -> "ContentCipher":
        try:
            return cls[name.upper()]
        except KeyError:
            raise KeyMaterialError(f"Unsupported content cipher: {name}") from None


class SignatureScheme(Enum):
    """Digest and signature pairing, bound to the RSA key family."""

    SHA1_WITH_RSA = "SHA1withRSA"
    SHA256_WITH_RSA = "SHA256withRSA"

    def digest(self) -> hashes.HashAlgorithm:
        if self is SignatureScheme.SHA1_WITH_RSA:
            return hashes.SHA1()
        return hashes.SHA256()

    @classmethod
    def from_name(cls, name: str) -> "SignatureScheme":
        for scheme in cls:
            if name.upper() in (scheme.name, scheme.value.upper()):
                return scheme
        raise KeyMaterialError(f"Unsupported signature scheme: {name}")


def require_rsa(key) -> None:
    """Reject key objects outside the RSA family."""
    if not isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        raise KeyMaterialError(
            f"Unsupported key algorithm: {type(key).__name__} (only RSA is supported)"
        )


def validate_wrapped_key_length(length: int) -> int:
    """
    Check that a wrapped key of ``length`` bytes fits the envelope header.

    Returns:
        The header byte value for that length
    """
    if length <= 0 or length % WRAPPED_KEY_LENGTH_SCALE:
        raise KeyMaterialError(
            f"Wrapped key length {length} is not a multiple of {WRAPPED_KEY_LENGTH_SCALE} bytes"
        )
    if length > MAX_WRAPPED_KEY_LENGTH:
        raise KeyMaterialError(
            f"Wrapped key length {length} exceeds the {MAX_WRAPPED_KEY_LENGTH} byte limit"
        )
    return length // WRAPPED_KEY_LENGTH_SCALE
