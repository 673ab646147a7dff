"""
Hex conversion for signatures and ciphertext embedded in text.
"""

import re

from .errors import DecodingError

_HEX_RE = re.compile(r"\A[0-9a-fA-F]*\Z")


def bytes_to_hex(data: bytes) -> str:
    """Lowercase hex, two characters per byte, no separators."""
    return memoryview(data).tobytes().hex()


def hex_to_bytes(text: str) -> bytes:
    """
    Decode a hex string.

    Raises:
        DecodingError: If the input has odd length or contains non-hex characters
    """
    if len(text) % 2:
        raise DecodingError(f"Hex string has odd length: {len(text)}")
    if not _HEX_RE.match(text):
        raise DecodingError("Hex string contains non-hex characters")
    return bytes.fromhex(text)


def is_hex(text: str) -> bool:
    """Check if text is an even-length run of hex digits."""
    return len(text) % 2 == 0 and bool(_HEX_RE.match(text))
