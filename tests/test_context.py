"""
Unit tests for wiring the crypto components from configuration.
"""
import dataclasses

import pytest

from crypto.algorithms import ContentCipher, SignatureScheme
from crypto.context import CryptoContext
from crypto.errors import EncryptionException, KeyMaterialError

from .conftest import SHARED_SECRET, SHARED_SECRET_VARIABLE


@pytest.fixture
def environ():
    return {SHARED_SECRET_VARIABLE: SHARED_SECRET}


def test_encryptor_built_once(test_config, environ):
    context = CryptoContext(test_config, environ)
    encryptor = context.encryptor()
    assert context.encryptor() is encryptor
    assert context.key_manager.is_loaded
    assert encryptor.decrypt_bytes(encryptor.encrypt_bytes(b"hello world")) == b"hello world"


def test_algorithms_from_config(test_config, environ):
    cfg = dataclasses.replace(test_config, CONTENT_CIPHER="aes_256", SIGNATURE_SCHEME="SHA256withRSA")
    context = CryptoContext(cfg, environ)
    assert context.content_cipher is ContentCipher.AES_256
    assert context.encryptor().signer.scheme is SignatureScheme.SHA256_WITH_RSA


def test_unknown_cipher_rejected(test_config, environ):
    with pytest.raises(KeyMaterialError):
        CryptoContext(dataclasses.replace(test_config, CONTENT_CIPHER="DES"), environ)


def test_missing_shared_secret(test_config):
    context = CryptoContext(test_config, {})
    with pytest.raises(EncryptionException):
        context.password_ciphers.get()
    with pytest.raises(KeyMaterialError):
        context.encryptor()
