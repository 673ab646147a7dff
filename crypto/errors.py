"""
Exception types raised by the crypto package.

Low-level causes (I/O errors, provider errors) are always chained so the
original exception stays available as ``__cause__``.
"""


class CryptoError(Exception):
    """Base class for all crypto failures."""


class KeyMaterialError(CryptoError):
    """The system key pair could not be loaded or is unsupported. Fatal."""


class EncryptionException(CryptoError):
    """A single encrypt, decrypt, sign or verify call failed."""


class DecodingError(CryptoError, ValueError):
    """Malformed hex input."""
