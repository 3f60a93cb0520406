"""
WorkZen - Field Encryption Tests
"""

import pytest

from workzen.config import settings
from workzen.utils import field_encryption
from workzen.utils.field_encryption import (
    EncryptionConfigurationError,
    FieldDecryptionError,
    FieldEncryptionCodec,
    derive_key,
    mask_aadhaar,
    mask_account_number,
    mask_pan,
)


@pytest.fixture
def codec() -> FieldEncryptionCodec:
    return FieldEncryptionCodec(derive_key("unit-test-secret"))


class TestFieldEncryptionCodec:

    def test_round_trip(self, codec):
        token = codec.encrypt("ABCDE1234F")
        assert token != "ABCDE1234F"
        assert codec.decrypt(token) == "ABCDE1234F"

    def test_token_format_is_hex_iv_and_ciphertext(self, codec):
        iv_hex, ct_hex = codec.encrypt("123456789012").split(":")
        assert len(bytes.fromhex(iv_hex)) == 16
        assert len(bytes.fromhex(ct_hex)) % 16 == 0

    def test_fresh_iv_per_encryption(self, codec):
        first = codec.encrypt("50100012345678")
        second = codec.encrypt("50100012345678")
        assert first != second
        assert first.split(":")[0] != second.split(":")[0]
        assert codec.decrypt(first) == codec.decrypt(second) == "50100012345678"

    def test_none_passes_through(self, codec):
        assert codec.encrypt(None) is None
        assert codec.decrypt(None) is None

    def test_unicode_round_trip(self, codec):
        assert codec.decrypt(codec.encrypt("Śrī Lakṣmī")) == "Śrī Lakṣmī"

    @pytest.mark.parametrize("token", ["not-a-token", "zz:zz", "abcd:", "00" * 16 + ":" + "ab"])
    def test_malformed_token_rejected(self, codec, token):
        with pytest.raises(FieldDecryptionError):
            codec.decrypt(token)

    def test_other_key_never_yields_plaintext(self, codec):
        token = codec.encrypt("ABCDE1234F")
        other = FieldEncryptionCodec(derive_key("a-different-secret"))
        try:
            assert other.decrypt(token) != "ABCDE1234F"
        except FieldDecryptionError:
            pass

    def test_key_must_be_32_bytes(self):
        with pytest.raises(ValueError):
            FieldEncryptionCodec(b"short")

    def test_derived_key_depends_on_secret(self):
        assert derive_key("one") != derive_key("two")
        assert len(derive_key("one")) == 32


class TestProcessCodec:

    @pytest.fixture(autouse=True)
    def reset_codec_cache(self):
        field_encryption.get_field_codec.cache_clear()
        yield
        field_encryption.get_field_codec.cache_clear()

    def test_module_helpers_round_trip(self):
        assert field_encryption.decrypt(field_encryption.encrypt("HDFC0001234")) == "HDFC0001234"

    def test_production_without_secret_refuses_to_start(self, monkeypatch):
        monkeypatch.setattr(settings, "app_env", "production")
        monkeypatch.setattr(settings, "field_encryption_secret", "")
        monkeypatch.setattr(settings, "jwt_secret_key", "")

        with pytest.raises(EncryptionConfigurationError):
            field_encryption.get_field_codec()

    def test_non_production_falls_back_to_secret_key(self, monkeypatch):
        monkeypatch.setattr(settings, "field_encryption_secret", "")
        monkeypatch.setattr(settings, "jwt_secret_key", "")

        codec = field_encryption.get_field_codec()
        expected = FieldEncryptionCodec(derive_key(settings.secret_key))
        assert expected.decrypt(codec.encrypt("ABCDE1234F")) == "ABCDE1234F"


class TestMasking:

    def test_mask_pan(self):
        assert mask_pan("ABCDE1234F") == "ABCDXXXX4F"

    def test_mask_aadhaar(self):
        assert mask_aadhaar("123456789012") == "XXXX XXXX 9012"
        assert mask_aadhaar("1234 5678 9012") == "XXXX XXXX 9012"

    def test_mask_account_number(self):
        assert mask_account_number("50100012345678") == "XXXX XXXX 5678"

    def test_short_or_empty_values_unchanged(self):
        assert mask_pan("ABC") == "ABC"
        assert mask_aadhaar("1234") == "1234"
        assert mask_account_number("123") == "123"
        assert mask_pan(None) is None
        assert mask_aadhaar("") == ""
