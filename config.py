"""
Configuration for the envelope encryption tools.
"""

import os
from pathlib import Path
from dataclasses import dataclass

# Application version - update this for each release
VERSION = "1.0.0"


@dataclass
class Config:
    """Application configuration."""

    # Storage paths
    STORAGE_DIR: Path = Path(os.getenv("ENVELOPE_STORAGE_DIR", Path(__file__).parent / "data"))

    # Key store settings
    KEYSTORE_FILE: Path = Path(
        os.getenv("ENVELOPE_KEYSTORE_FILE", STORAGE_DIR / "keys" / "keystore.p12")
    )
    # Encrypted with the shared secret, see `main.py encrypt-property`
    KEYSTORE_PASSWORD: str = os.getenv("ENVELOPE_KEYSTORE_PASSWORD", "")

    # Name of the environment variable holding the shared secret
    SHARED_SECRET_VARIABLE: str = os.getenv(
        "ENVELOPE_SHARED_SECRET_VARIABLE", "ENVELOPE_SHARED_SECRET"
    )

    # Cryptographic settings
    CONTENT_CIPHER: str = os.getenv("ENVELOPE_CONTENT_CIPHER", "AES_128")
    SIGNATURE_SCHEME: str = os.getenv("ENVELOPE_SIGNATURE_SCHEME", "SHA1_WITH_RSA")

    LOG_LEVEL: str = os.getenv("ENVELOPE_LOG_LEVEL", "INFO")

    @property
    def certificate_path(self) -> Path:
        """Path to the exported public certificate."""
        return self.KEYSTORE_FILE.with_suffix(".crt")


# Global config instance
config = Config()
