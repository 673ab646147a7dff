"""
Envelope encryption of data streams.

Each call generates a random content key, encrypts the payload with it
(AES/ECB/PKCS7) and stores the content key, wrapped with the RSA key pair,
in front of the ciphertext:

    [1 byte: wrapped key length / 8][wrapped content key][ciphertext]

The content key is wrapped with the *private* key and unwrapped with the
*public* key. Anyone holding the public key can therefore unwrap it; the
envelope proves the data came from the key holder but does not keep it secret
from public key holders. Existing artifacts depend on this, so it is kept.
"""

import io
import os
import math
import secrets
from typing import BinaryIO

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .algorithms import (
    WRAPPED_KEY_LENGTH_SCALE,
    ContentCipher,
    SignatureScheme,
    require_rsa,
    validate_wrapped_key_length,
)
from .errors import CryptoError, EncryptionException, KeyMaterialError
from .key_manager import KeyPair
from .signing import Signer

VALID_CONTENT_KEY_LENGTHS = frozenset({16, 24, 32})  # AES-128, AES-192, AES-256


class EnvelopeEncryptor:
    """Encrypts, decrypts, signs and verifies with the system key pair."""

    BUFFER_SIZE = 64 * 1024
    PKCS1_OVERHEAD = 11  # 0x00 0x01, at least 8 bytes of 0xff, 0x00

    def __init__(
        self,
        key_pair: KeyPair,
        content_cipher: ContentCipher = ContentCipher.AES_128,
        signature_scheme: SignatureScheme = SignatureScheme.SHA1_WITH_RSA,
    ):
        """
        Args:
            key_pair: The system key pair
            content_cipher: Cipher used for the payload
            signature_scheme: Scheme used by sign/verify

        Raises:
            KeyMaterialError: If the key size cannot be expressed in the
                envelope header or cannot hold the content key
        """
        require_rsa(key_pair.private_key)
        require_rsa(key_pair.public_key)
        self.key_pair = key_pair
        self.content_cipher = content_cipher
        self.signer = Signer(key_pair, signature_scheme)

        self._wrapped_key_length = (key_pair.private_key.key_size + 7) // 8
        validate_wrapped_key_length(self._wrapped_key_length)
        if content_cipher.key_length > self._wrapped_key_length - self.PKCS1_OVERHEAD:
            raise KeyMaterialError(
                f"{key_pair.key_size}-bit key is too small to wrap a {content_cipher.value}-bit content key"
            )

    @property
    def wrapped_key_length(self) -> int:
        return self._wrapped_key_length

    # =========================================================================
    # Content key wrapping
    # =========================================================================

    def _wrap_key(self, content_key: bytes) -> bytes:
        """RSA private-key operation over a PKCS#1 v1.5 type 1 block."""
        k = self._wrapped_key_length
        block = (
            b"\x00\x01"
            + b"\xff" * (k - 3 - len(content_key))
            + b"\x00"
            + content_key
        )
        numbers = self.key_pair.private_key.private_numbers()
        n = numbers.public_numbers.n
        e = numbers.public_numbers.e
        m = int.from_bytes(block, "big")

        # Base and exponent blinding: pow() is variable-time, so it only
        # ever sees a random base and a randomised exponent.
        while True:
            r = secrets.randbelow(n - 2) + 2
            if math.gcd(r, n) == 1:
                break
        phi = (numbers.p - 1) * (numbers.q - 1)
        d = numbers.d + (secrets.randbits(64) + 1) * phi
        blinded = (m * pow(r, e, n)) % n
        wrapped = (pow(blinded, d, n) * pow(r, -1, n)) % n
        return wrapped.to_bytes(k, "big")

    def _unwrap_key(self, wrapped: bytes) -> bytes:
        try:
            content_key = self.key_pair.public_key.recover_data_from_signature(
                wrapped, padding.PKCS1v15(), None
            )
        except InvalidSignature as e:
            raise ValueError("Wrapped content key is corrupt") from e
        # Any AES key size; the header does not record which cipher wrote it.
        if len(content_key) not in VALID_CONTENT_KEY_LENGTHS:
            raise ValueError(f"Unwrapped content key has wrong length: {len(content_key)}")
        return content_key

    def _cipher(self, content_key: bytes) -> Cipher:
        # New instance per call; cipher contexts are never shared.
        return Cipher(algorithms.AES(content_key), modes.ECB())

    # =========================================================================
    # Streams
    # =========================================================================

    def encrypt(self, source: BinaryIO, sink: BinaryIO) -> None:
        """
        Encrypt everything readable from ``source`` into ``sink``.

        Raises:
            EncryptionException: If key generation, wrapping or I/O fails
        """
        try:
            content_key = os.urandom(self.content_cipher.key_length)
            wrapped = self._wrap_key(content_key)

            sink.write(bytes([len(wrapped) // WRAPPED_KEY_LENGTH_SCALE]))
            sink.write(wrapped)

            encryptor = self._cipher(content_key).encryptor()
            padder = sym_padding.PKCS7(algorithms.AES.block_size).padder()
            while True:
                chunk = source.read(self.BUFFER_SIZE)
                if not chunk:
                    break
                sink.write(encryptor.update(padder.update(chunk)))
            sink.write(encryptor.update(padder.finalize()) + encryptor.finalize())
        except (OSError, ValueError, TypeError, CryptoError) as e:
            raise EncryptionException("Failed to encrypt data") from e

    def decrypt(self, source: BinaryIO, sink: BinaryIO) -> None:
        """
        Decrypt an envelope read from ``source`` into ``sink``.

        Raises:
            EncryptionException: On a malformed header, truncated or corrupt
                key, bad padding or I/O failure
        """
        try:
            header = source.read(1)
            if not header:
                raise ValueError("Envelope is empty")
            wrapped_length = header[0] * WRAPPED_KEY_LENGTH_SCALE
            if wrapped_length != self._wrapped_key_length:
                raise ValueError(
                    f"Envelope declares a {wrapped_length} byte key, expected {self._wrapped_key_length}"
                )
            wrapped = self._read_exactly(source, wrapped_length)
            content_key = self._unwrap_key(wrapped)

            decryptor = self._cipher(content_key).decryptor()
            unpadder = sym_padding.PKCS7(algorithms.AES.block_size).unpadder()
            while True:
                chunk = source.read(self.BUFFER_SIZE)
                if not chunk:
                    break
                sink.write(unpadder.update(decryptor.update(chunk)))
            sink.write(unpadder.update(decryptor.finalize()) + unpadder.finalize())
        except (OSError, ValueError, TypeError, IndexError, CryptoError) as e:
            raise EncryptionException("Failed to decrypt data") from e

    @staticmethod
    def _read_exactly(source: BinaryIO, length: int) -> bytes:
        """Accumulate short reads until ``length`` bytes arrive or the stream ends."""
        buf = bytearray()
        while len(buf) < length:
            chunk = source.read(length - len(buf))
            if not chunk:
                raise ValueError(f"Envelope truncated: expected {length} key bytes, got {len(buf)}")
            buf += chunk
        return bytes(buf)

    def encrypt_bytes(self, data: bytes) -> bytes:
        sink = io.BytesIO()
        self.encrypt(io.BytesIO(data), sink)
        return sink.getvalue()

    def decrypt_bytes(self, data: bytes) -> bytes:
        sink = io.BytesIO()
        self.decrypt(io.BytesIO(data), sink)
        return sink.getvalue()

    # =========================================================================
    # Signatures
    # =========================================================================

    def sign(self, data: bytes) -> bytes:
        return self.signer.sign(data)

    def verify(self, data: bytes, signature: bytes) -> bool:
        return self.signer.verify(data, signature)

    def sign_string(self, data: str, charset: str) -> str:
        return self.signer.sign_string(data, charset)

    def verify_string(self, data: str, charset: str, signature: str) -> bool:
        return self.signer.verify_string(data, charset, signature)
