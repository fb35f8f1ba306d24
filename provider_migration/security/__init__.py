"""Credential encryption and error sanitization."""

from provider_migration.security.encryption import (
    ENCRYPTED_PREFIX,
    EncryptionGateway,
    FernetCredentialEncryptor,
)
from provider_migration.security.sanitizer import (
    GENERIC_ERROR_MESSAGE,
    ErrorSanitizer,
    sanitize_error_message,
)

__all__ = [
    "ENCRYPTED_PREFIX",
    "EncryptionGateway",
    "FernetCredentialEncryptor",
    "GENERIC_ERROR_MESSAGE",
    "ErrorSanitizer",
    "sanitize_error_message",
]
