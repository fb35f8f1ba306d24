"""Encryption gateway used to protect provider secrets at rest."""

import logging
import os
from typing import Mapping, Optional, Protocol, Union, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken

from provider_migration.core.exceptions import ConfigurationError, EncryptionError
from provider_migration.models.config import DEFAULT_ENCRYPTION_KEY_ENV

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "ENC:"


@runtime_checkable
class EncryptionGateway(Protocol):
    """Interface of the encryption collaborator used by the migration."""

    def encrypt(self, value: str) -> str:
        ...

    def decrypt(self, cipher_text: str) -> str:
        ...

    def is_encrypted(self, value: str) -> bool:
        ...


class FernetCredentialEncryptor:
    """Encrypts credentials with Fernet and marks them with an ``ENC:`` prefix."""

    def __init__(self, key: Union[str, bytes]):
        """Initialize the encryptor.

        Args:
            key: URL-safe base64 encoded 32-byte Fernet key

        Raises:
            ConfigurationError: If the key is not a valid Fernet key
        """
        if isinstance(key, str):
            key = key.encode("utf-8")
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid encryption key: {e}")

    @classmethod
    def from_environment(
        cls,
        env_var: str = DEFAULT_ENCRYPTION_KEY_ENV,
        environ: Optional[Mapping[str, str]] = None
    ) -> "FernetCredentialEncryptor":
        """Create an encryptor from a key stored in an environment variable."""
        environ = os.environ if environ is None else environ
        key = environ.get(env_var)
        if not key:
            raise ConfigurationError(
                f"Encryption key not set; export {env_var} with a Fernet key"
            )
        return cls(key)

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key."""
        return Fernet.generate_key().decode("utf-8")

    def encrypt(self, value: str) -> str:
        """Encrypt a credential value.

        Values that are already encrypted are returned unchanged.
        """
        if value is None or value == "":
            return value
        if self.is_encrypted(value):
            return value
        try:
            token = self._fernet.encrypt(value.encode("utf-8"))
        except Exception as e:
            logger.error(f"Encryption failed: {type(e).__name__}")
            raise EncryptionError("Failed to encrypt credential")
        return ENCRYPTED_PREFIX + token.decode("utf-8")

    def decrypt(self, cipher_text: str) -> str:
        """Decrypt a credential value produced by :meth:`encrypt`."""
        if not self.is_encrypted(cipher_text):
            raise EncryptionError("Value is not an encrypted credential")
        try:
            data = self._fernet.decrypt(cipher_text[len(ENCRYPTED_PREFIX):].encode("utf-8"))
        except InvalidToken:
            logger.error("Decryption failed: invalid token or wrong key")
            raise EncryptionError("Failed to decrypt credential")
        return data.decode("utf-8")

    def is_encrypted(self, value: str) -> bool:
        return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)
