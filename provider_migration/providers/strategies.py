"""Concrete provider strategies, one per family of provider types."""

from typing import Any, Dict, Mapping, Optional

from provider_migration.core.exceptions import MissingRequiredFieldError
from provider_migration.models.migration import ProviderDescriptor
from provider_migration.providers.base import ProviderStrategy

GOOGLE_TYPES = ("google_drive", "google_photo", "drive", "gphotos")


class HostBasedStrategy(ProviderStrategy):
    """SFTP-like and FTP servers identified by host, port, user and key file."""

    provider_types = ("sftp", "hetzner", "ftp")
    key_fields = ("host", "port", "username", "key_file")
    labels = {"sftp": "SFTP", "hetzner": "Hetzner", "ftp": "FTP"}

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        normalized = super().normalize(fields)
        if normalized.get("host"):
            normalized["host"] = normalized["host"].lower()
        return normalized

    def identity(self, descriptor: ProviderDescriptor) -> Optional[str]:
        username, host = descriptor.get("username") or "", descriptor.get("host") or ""
        if not (username or host):
            return None
        return f"{username}@{host}"

    def auto_fill_defaults(self, record: Dict[str, Any]) -> bool:
        changed = self._fill(record, "host", "placeholder.example.com")
        changed |= self._fill(record, "port", 21 if record.get("type") == "ftp" else 22)
        changed |= self._fill(record, "username", "placeholder_user")
        return changed

    def validate(self, record: Mapping[str, Any]) -> None:
        label = self.label(record.get("type"))
        self._require(record, "host", f"host is required for {label} provider")
        port = record.get("port")
        if port is None or port <= 0:
            raise MissingRequiredFieldError(
                f"a positive port is required for {label} provider",
                failed_fields=["port"]
            )
        self._require(record, "username", f"username is required for {label} provider")

        if record.get("type") == "ftp":
            if not self._present(record, "encrypted_password"):
                raise MissingRequiredFieldError(
                    f"password is required for {label} provider",
                    failed_fields=["encrypted_password"]
                )
        elif not self._present(record, "encrypted_password", "key_file"):
            raise MissingRequiredFieldError(
                f"either password or key file is required for {label} provider",
                failed_fields=["encrypted_password", "key_file"]
            )


class ObjectStorageStrategy(ProviderStrategy):
    """S3 compatible object stores identified by endpoint, region and access key."""

    provider_types = ("s3", "wasabi", "minio", "b2")
    key_fields = ("endpoint", "region", "access_key")
    labels = {"s3": "S3", "wasabi": "Wasabi", "minio": "MinIO", "b2": "Backblaze B2"}

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        normalized = super().normalize(fields)
        if normalized.get("endpoint"):
            normalized["endpoint"] = normalized["endpoint"].rstrip("/")
        return normalized

    def identity(self, descriptor: ProviderDescriptor) -> Optional[str]:
        region, bucket = descriptor.get("region") or "", descriptor.get("bucket") or ""
        if not (region or bucket):
            return None
        return f"{region} - {bucket}"

    def auto_fill_defaults(self, record: Dict[str, Any]) -> bool:
        changed = self._fill(record, "bucket", "placeholder-bucket")
        changed |= self._fill(record, "region", "us-east-1")
        changed |= self._fill(record, "access_key", "PLACEHOLDER_ACCESS_KEY")
        changed |= self._fill(record, "endpoint", "https://s3.amazonaws.com")
        return changed

    def validate(self, record: Mapping[str, Any]) -> None:
        label = self.label(record.get("type"))
        if not self._present(record, "access_key", "username"):
            raise MissingRequiredFieldError(
                f"access key is required for {label} provider",
                failed_fields=["access_key"]
            )
        self._require(record, "encrypted_secret_key", f"secret key is required for {label} provider")
        self._require(record, "region", f"region is required for {label} provider")


class ShareStrategy(ProviderStrategy):
    """SMB shares identified by host, share name and user."""

    provider_types = ("smb",)
    key_fields = ("host", "share", "username")
    labels = {"smb": "SMB"}

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        normalized = super().normalize(fields)
        if normalized.get("host"):
            normalized["host"] = normalized["host"].lower()
        return normalized

    def identity(self, descriptor: ProviderDescriptor) -> Optional[str]:
        share, host = descriptor.get("share") or "", descriptor.get("host") or ""
        if not (share or host):
            return None
        return f"{share} on {host}"

    def auto_fill_defaults(self, record: Dict[str, Any]) -> bool:
        changed = self._fill(record, "host", "placeholder-smb-server")
        changed |= self._fill(record, "share", "placeholder-share")
        changed |= self._fill(record, "domain", "WORKGROUP")
        return changed

    def validate(self, record: Mapping[str, Any]) -> None:
        self._require(record, "host", "host is required for SMB provider")
        self._require(record, "username", "username is required for SMB provider")
        self._require(record, "encrypted_password", "password is required for SMB provider")


class OAuthStrategy(ProviderStrategy):
    """OneDrive and Google services identified by OAuth client and drive.

    Refresh tokens are not checked: inline configs never stored them, so the
    migrated provider has to be re-authorised by its owner anyway.
    """

    provider_types = ("onedrive",) + GOOGLE_TYPES
    key_fields = ("client_id", "drive_id")
    labels = {
        "onedrive": "OneDrive",
        "google_drive": "Google Drive",
        "drive": "Google Drive",
        "google_photo": "Google Photos",
        "gphotos": "Google Photos",
    }

    def auto_fill_defaults(self, record: Dict[str, Any]) -> bool:
        changed = self._fill(record, "client_id", "placeholder-client-id")
        if record.get("type") in ("onedrive", "google_drive", "drive"):
            changed |= self._fill(record, "drive_id", "placeholder-drive-id")
        return changed

    def validate(self, record: Mapping[str, Any]) -> None:
        provider_type = record.get("type")
        label = self.label(provider_type)
        if provider_type in GOOGLE_TYPES and record.get("use_builtin_auth"):
            return
        suffix = " when not using builtin auth" if provider_type in GOOGLE_TYPES else ""
        self._require(record, "client_id", f"client ID is required for {label} provider{suffix}")
        self._require(
            record,
            "encrypted_client_secret",
            f"client secret is required for {label} provider{suffix}"
        )


class LocalStrategy(ProviderStrategy):
    """Local filesystem; one provider per owner."""

    provider_types = ("local",)
    key_fields = ("owner_id",)
    labels = {"local": "Local"}

    def validate(self, record: Mapping[str, Any]) -> None:
        return None


class GenericStrategy(ProviderStrategy):
    """Fallback for WebDAV, Nextcloud and types without dedicated rules."""

    provider_types = ("webdav", "nextcloud")
    key_fields = ("host", "port", "username")

    def supports(self, provider_type: str) -> bool:
        return True

    def validate(self, record: Mapping[str, Any]) -> None:
        return None
