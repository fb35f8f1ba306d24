"""Tests for the encryption gateway and error sanitization."""

import pytest

from provider_migration.core.exceptions import ConfigurationError, EncryptionError
from provider_migration.security import (
    ENCRYPTED_PREFIX,
    GENERIC_ERROR_MESSAGE,
    EncryptionGateway,
    ErrorSanitizer,
    FernetCredentialEncryptor,
    sanitize_error_message,
)


class TestFernetCredentialEncryptor:
    """Test cases for FernetCredentialEncryptor."""

    def test_satisfies_gateway_protocol(self, gateway):
        assert isinstance(gateway, EncryptionGateway)

    def test_encrypt_decrypt(self, gateway):
        cipher_text = gateway.encrypt("s3cr3t-pw")

        assert cipher_text.startswith(ENCRYPTED_PREFIX)
        assert "s3cr3t-pw" not in cipher_text
        assert gateway.decrypt(cipher_text) == "s3cr3t-pw"

    def test_is_encrypted(self, gateway):
        assert gateway.is_encrypted(gateway.encrypt("value"))
        assert not gateway.is_encrypted("value")
        assert not gateway.is_encrypted(None)

    def test_encrypt_is_not_applied_twice(self, gateway):
        cipher_text = gateway.encrypt("value")
        assert gateway.encrypt(cipher_text) == cipher_text

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values_pass_through(self, gateway, value):
        assert gateway.encrypt(value) == value

    def test_decrypt_with_wrong_key(self, gateway):
        other = FernetCredentialEncryptor(FernetCredentialEncryptor.generate_key())
        with pytest.raises(EncryptionError):
            other.decrypt(gateway.encrypt("value"))

    def test_decrypt_plaintext(self, gateway):
        with pytest.raises(EncryptionError):
            gateway.decrypt("not encrypted")

    def test_invalid_key(self):
        with pytest.raises(ConfigurationError):
            FernetCredentialEncryptor("not-a-fernet-key")

    def test_from_environment(self, encryption_key):
        encryptor = FernetCredentialEncryptor.from_environment(
            "MY_KEY", environ={"MY_KEY": encryption_key}
        )
        assert encryptor.decrypt(encryptor.encrypt("x")) == "x"

    def test_from_environment_missing_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            FernetCredentialEncryptor.from_environment("MY_KEY", environ={})
        assert "MY_KEY" in exc_info.value.message


class TestSanitizeErrorMessage:
    """Test cases for error message sanitization."""

    def test_plain_message_is_kept(self):
        assert sanitize_error_message("disk I/O error") == "disk I/O error"

    @pytest.mark.parametrize("message", [
        "invalid password for user deploy",
        "SECRET mismatch",
        "token expired",
        "bad access key",
        "credential store unavailable",
        "authentication failed",
    ])
    def test_sensitive_message_is_replaced(self, message):
        assert sanitize_error_message(message) == GENERIC_ERROR_MESSAGE

    def test_debug_mode_redacts_values(self):
        sanitized = sanitize_error_message(
            "login failed: password=hunter2 token: 'abc123' host=files.example.com",
            debug_mode=True
        )
        assert sanitized.startswith("DEBUG: ")
        assert "hunter2" not in sanitized
        assert "abc123" not in sanitized
        assert "password=[REDACTED]" in sanitized
        assert "host=files.example.com" in sanitized

    def test_debug_mode_keeps_message_without_values(self):
        assert sanitize_error_message("connection reset", debug_mode=True) == "DEBUG: connection reset"

    def test_custom_keywords(self):
        sanitizer = ErrorSanitizer(keywords=["pin"])
        assert sanitizer.sanitize("wrong PIN entered") == GENERIC_ERROR_MESSAGE
        assert sanitizer.sanitize("wrong password") == "wrong password"

    def test_empty_message(self):
        assert sanitize_error_message(None) == ""
