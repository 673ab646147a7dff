"""
Signing and verification with the system key pair.
"""

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import padding

from .algorithms import SignatureScheme, require_rsa
from .errors import EncryptionException
from .hex_utils import bytes_to_hex, hex_to_bytes
from .key_manager import KeyPair


class Signer:
    """Signs with the private key and verifies with the public key."""

    def __init__(self, key_pair: KeyPair, scheme: SignatureScheme = SignatureScheme.SHA1_WITH_RSA):
        require_rsa(key_pair.private_key)
        require_rsa(key_pair.public_key)
        self.key_pair = key_pair
        self.scheme = scheme

    def sign(self, data: bytes) -> bytes:
        try:
            return self.key_pair.private_key.sign(
                _as_bytes(data), padding.PKCS1v15(), self.scheme.digest()
            )
        except (TypeError, ValueError, UnsupportedAlgorithm) as e:
            raise EncryptionException("Failed to sign data") from e

    def verify(self, data: bytes, signature: bytes) -> bool:
        """
        Check a signature against the data.

        Returns:
            False if the signature does not match. Only malformed input or an
            unusable algorithm raises.
        """
        try:
            self.key_pair.public_key.verify(
                _as_bytes(signature), _as_bytes(data), padding.PKCS1v15(), self.scheme.digest()
            )
        except InvalidSignature:
            return False
        except (TypeError, ValueError, UnsupportedAlgorithm) as e:
            raise EncryptionException("Failed to verify signature") from e
        return True

    def sign_string(self, data: str, charset: str) -> str:
        """Sign the encoded string and return the signature as lowercase hex."""
        return bytes_to_hex(self.sign(_encode(data, charset, "Failed to sign data")))

    def verify_string(self, data: str, charset: str, signature: str) -> bool:
        """
        Verify a hex signature over the encoded string.

        Raises:
            DecodingError: If the signature is not valid hex
        """
        encoded = _encode(data, charset, "Failed to verify signature")
        return self.verify(encoded, hex_to_bytes(signature))


def _encode(data: str, charset: str, message: str) -> bytes:
    try:
        return data.encode(charset)
    except (LookupError, UnicodeError) as e:
        raise EncryptionException(message) from e


def _as_bytes(data) -> bytes:
    # Bytes-like objects only; an int is rejected rather than zero-filled.
    return memoryview(data).tobytes()
