"""
Key management for the system RSA key pair.

The key pair lives in a PKCS#12 key store. The store password is itself kept
encrypted in configuration and recovered through the password cipher at
startup. The pair is loaded once and kept for the lifetime of the process;
picking up new key material requires a restart.
"""

import logging
import datetime
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from .algorithms import require_rsa
from .errors import CryptoError, KeyMaterialError
from .lazy import LazyValue
from .passphrase import PasswordCipherSupplier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPair:
    """The system public and private keys, read-only once loaded."""
    public_key: rsa.RSAPublicKey
    private_key: rsa.RSAPrivateKey
    alias: Optional[str] = None

    @property
    def key_size(self) -> int:
        """Modulus size in bits."""
        return self.private_key.key_size


class KeyManager:
    """
    Loads the system key pair from the key store on first use.

    The store is expected to hold exactly one key entry; its alias is
    whatever the store names it.
    """

    def __init__(
        self,
        keystore_path: Path,
        encrypted_password: str,
        password_ciphers: PasswordCipherSupplier,
        charset: str = "utf-8",
    ):
        """
        Args:
            keystore_path: Path to the PKCS#12 key store
            encrypted_password: Store password, encrypted with the password cipher
            password_ciphers: Supplies the cipher that decrypts the password
            charset: Encoding of the decrypted password
        """
        self.keystore_path = Path(keystore_path)
        self.encrypted_password = encrypted_password
        self.password_ciphers = password_ciphers
        self.charset = charset
        self._key_pair = LazyValue(self._load_key_pair)

    @property
    def is_loaded(self) -> bool:
        """Check if the key pair has been loaded."""
        return self._key_pair.is_set

    def get(self) -> KeyPair:
        """
        Get the system key pair, loading it on the first call.

        Raises:
            KeyMaterialError: The store is unreadable, the key is unrecoverable
                or the algorithm is unsupported
        """
        return self._key_pair.get()

    def _read_password(self) -> bytes:
        try:
            password = self.password_ciphers.get().decrypt(self.encrypted_password, self.charset)
        except CryptoError as e:
            raise KeyMaterialError("Failed to recover the key store password") from e
        return password.encode(self.charset)

    def _load_key_pair(self) -> KeyPair:
        password = self._read_password()
        try:
            data = self.keystore_path.read_bytes()
            store = pkcs12.load_pkcs12(data, password)
        except (OSError, ValueError) as e:
            raise KeyMaterialError("Failed to retrieve key pair from system key store") from e

        if store.key is None or store.cert is None:
            raise KeyMaterialError(f"No key entry found in key store {self.keystore_path}")

        private_key = store.key
        public_key = store.cert.certificate.public_key()
        require_rsa(private_key)
        require_rsa(public_key)

        alias = store.cert.friendly_name.decode("utf-8") if store.cert.friendly_name else None
        logger.info(
            "Loaded %d-bit key pair '%s' from %s", private_key.key_size, alias, self.keystore_path
        )
        return KeyPair(public_key=public_key, private_key=private_key, alias=alias)


def generate_keystore(
    path: Path,
    password: str,
    alias: str = "localhost",
    key_size: int = 4096,
    common_name: str = "localhost",
    organization: str = "envelope-crypto",
    country: str = "US",
    validity_days: int = 9999,
) -> x509.Certificate:
    """
    Create a PKCS#12 key store holding one self-signed CA key pair.

    Args:
        path: Where to write the key store
        password: Plain key store password
        alias: Friendly name of the key entry

    Returns:
        The self-signed certificate
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    name = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
        x509.NameAttribute(NameOID.COUNTRY_NAME, country),
    ])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=validity_days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=False,
        )
        .sign(private_key, hashes.SHA256())
    )

    data = pkcs12.serialize_key_and_certificates(
        name=alias.encode("utf-8"),
        key=private_key,
        cert=cert,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(password.encode("utf-8")),
    )
    path = Path(path)
    path.write_bytes(data)
    logger.info("Wrote %d-bit key store '%s' to %s", key_size, alias, path)
    return cert


def export_certificate(cert: x509.Certificate, path: Path) -> None:
    """Write the certificate as PEM so it can go into trust stores."""
    Path(path).write_bytes(cert.public_bytes(serialization.Encoding.PEM))
