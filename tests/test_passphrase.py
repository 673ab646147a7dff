"""
Unit tests for password-based encryption of configuration values.
"""
import base64

import pytest

from crypto.errors import EncryptionException
from crypto.hex_utils import bytes_to_hex
from crypto.passphrase import PassphraseDeriver, PasswordCipher, PasswordCipherSupplier

from .conftest import SHARED_SECRET, SHARED_SECRET_VARIABLE


@pytest.fixture(scope="module")
def cipher():
    return PasswordCipher(SHARED_SECRET)


class TestPassphraseDeriver:

    def test_same_secret_and_salt_give_same_key(self):
        key1, salt = PassphraseDeriver.derive_key("secret")
        key2, _ = PassphraseDeriver.derive_key("secret", salt)
        assert key1 == key2
        assert len(key1) == PassphraseDeriver.HASH_LEN
        assert len(salt) == PassphraseDeriver.SALT_LEN

    def test_different_salt_gives_different_key(self):
        key1, _ = PassphraseDeriver.derive_key("secret", b"a" * 16)
        key2, _ = PassphraseDeriver.derive_key("secret", b"b" * 16)
        assert key1 != key2


class TestPasswordCipher:

    def test_round_trip(self, cipher):
        encrypted = cipher.encrypt("keystore-password", "utf-8")
        assert encrypted != "keystore-password"
        assert cipher.decrypt(encrypted, "utf-8") == "keystore-password"

    def test_unicode_with_explicit_charset(self, cipher):
        encrypted = cipher.encrypt("pässwörd", "utf-16")
        assert cipher.decrypt(encrypted, "utf-16") == "pässwörd"

    def test_decrypt_accepts_hex(self, cipher):
        encrypted = cipher.encrypt("value", "utf-8")
        as_hex = bytes_to_hex(base64.b64decode(encrypted))
        assert cipher.decrypt(as_hex, "utf-8") == "value"

    def test_decrypt_is_stable_across_instances(self, cipher):
        encrypted = cipher.encrypt("value", "utf-8")
        assert PasswordCipher(SHARED_SECRET).decrypt(encrypted, "utf-8") == "value"

    def test_wrong_secret_fails(self, cipher):
        encrypted = cipher.encrypt("value", "utf-8")
        with pytest.raises(EncryptionException, match="Failed to decrypt property") as exc_info:
            PasswordCipher("another secret").decrypt(encrypted, "utf-8")
        assert exc_info.value.__cause__ is not None

    @pytest.mark.parametrize("value", ["", "not base64 !!", "abcd", base64.b64encode(b"short").decode()])
    def test_malformed_value_fails(self, cipher, value):
        with pytest.raises(EncryptionException):
            cipher.decrypt(value, "utf-8")

    def test_unknown_charset_fails(self, cipher):
        with pytest.raises(EncryptionException):
            cipher.encrypt("value", "no-such-charset")

    def test_empty_secret_rejected(self):
        with pytest.raises(EncryptionException):
            PasswordCipher("")


class TestPasswordCipherSupplier:

    def test_get_returns_same_instance(self):
        supplier = PasswordCipherSupplier(SHARED_SECRET_VARIABLE, {SHARED_SECRET_VARIABLE: SHARED_SECRET})
        assert supplier.get() is supplier.get()

    def test_missing_variable_fails_on_get(self):
        supplier = PasswordCipherSupplier("DOES_NOT_EXIST", {})
        with pytest.raises(EncryptionException, match="DOES_NOT_EXIST"):
            supplier.get()

    def test_empty_variable_fails_on_get(self):
        supplier = PasswordCipherSupplier(SHARED_SECRET_VARIABLE, {SHARED_SECRET_VARIABLE: ""})
        with pytest.raises(EncryptionException):
            supplier.get()

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("ENVELOPE_OTHER_SECRET", SHARED_SECRET)
        encrypted = PasswordCipher(SHARED_SECRET).encrypt("value", "utf-8")
        supplier = PasswordCipherSupplier("ENVELOPE_OTHER_SECRET")
        assert supplier.get().decrypt(encrypted, "utf-8") == "value"
