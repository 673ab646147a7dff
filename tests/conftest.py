"""
Shared fixtures: a throwaway PKCS#12 key store and a shared secret.

Key generation is slow, so the key store is built once per session.
"""
import datetime

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from config import Config
from crypto.key_manager import KeyManager, generate_keystore
from crypto.passphrase import PasswordCipher, PasswordCipherSupplier

SHARED_SECRET = "correct horse battery staple"
SHARED_SECRET_VARIABLE = "ENVELOPE_TEST_SHARED_SECRET"
KEYSTORE_PASSWORD = "password"


def write_keystore(path, private_key, password, alias="test"):
    """Write a PKCS#12 store for an arbitrary key type."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, alias)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(private_key, hashes.SHA256())
    )
    path.write_bytes(pkcs12.serialize_key_and_certificates(
        name=alias.encode(),
        key=private_key,
        cert=cert,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(password.encode()),
    ))
    return path


@pytest.fixture(scope="session")
def shared_env():
    """Environment mapping holding the shared secret."""
    return {SHARED_SECRET_VARIABLE: SHARED_SECRET}


@pytest.fixture(scope="session")
def encrypted_keystore_password():
    return PasswordCipher(SHARED_SECRET).encrypt(KEYSTORE_PASSWORD, "utf-8")


@pytest.fixture(scope="session")
def keystore_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("keys") / "keystore.p12"
    generate_keystore(path, KEYSTORE_PASSWORD, alias="localhost", key_size=2048)
    return path


@pytest.fixture(scope="session")
def key_pair(keystore_path, encrypted_keystore_password, shared_env):
    manager = KeyManager(
        keystore_path,
        encrypted_keystore_password,
        PasswordCipherSupplier(SHARED_SECRET_VARIABLE, shared_env),
    )
    return manager.get()


@pytest.fixture
def test_config(keystore_path, encrypted_keystore_password):
    return Config(
        KEYSTORE_FILE=keystore_path,
        KEYSTORE_PASSWORD=encrypted_keystore_password,
        SHARED_SECRET_VARIABLE=SHARED_SECRET_VARIABLE,
        CONTENT_CIPHER="AES_128",
        SIGNATURE_SCHEME="SHA1_WITH_RSA",
        LOG_LEVEL="WARNING",
    )
