"""Secure credential store.

Persists the credential record as four independent slots under the
"auth0-mcp" service namespace:

    AUTH0_TOKEN             access token
    AUTH0_DOMAIN            tenant domain
    AUTH0_REFRESH_TOKEN     refresh token (optional)
    AUTH0_TOKEN_EXPIRES_AT  access token expiry, decimal epoch milliseconds

Two secret backends:
1. KeyringBackend (primary): OS keychain via the keyring library
   - macOS: Keychain
   - Windows: Credential Locker
   - Linux: Secret Service (GNOME Keyring, KDE Wallet)

2. EncryptedFileBackend (fallback): one Fernet-encrypted file per slot
   - Used when keyring is unavailable
   - Key derived from machine-specific identifiers

Every CredentialStore operation catches backend failures and converts them
to a boolean, None, or a per-slot result. Nothing raises past this layer.
Slots are written independently, so a failed write on one slot never
touches the others.
"""

from __future__ import annotations

__all__ = [
    "ALL_SLOTS",
    "CredentialStore",
    "Credentials",
    "EncryptedFileBackend",
    "KeyringBackend",
    "KeychainSlot",
    "SecretBackend",
    "SlotResult",
    "create_secret_backend",
]

import base64
import hashlib
import platform
import socket
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import keyring
from keyring.errors import PasswordDeleteError
from pydantic import BaseModel, ConfigDict

from auth0_mcp.constants import ENCRYPTED_STORE_DIR, KEYCHAIN_SERVICE_NAME
from auth0_mcp.security.keyring_utils import describe_keyring_backend, is_keyring_available
from auth0_mcp.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from cryptography.fernet import Fernet


class KeychainSlot(str, Enum):
    """Logical credential slots and their keychain account names."""

    ACCESS_TOKEN = "AUTH0_TOKEN"
    DOMAIN = "AUTH0_DOMAIN"
    REFRESH_TOKEN = "AUTH0_REFRESH_TOKEN"
    TOKEN_EXPIRES_AT = "AUTH0_TOKEN_EXPIRES_AT"


ALL_SLOTS: tuple[KeychainSlot, ...] = tuple(KeychainSlot)


class SlotResult(BaseModel):
    """Outcome of a per-slot delete.

    Attributes:
        slot: The slot the operation targeted.
        success: True if a stored value was removed.
        error: Error text if the backend failed, None otherwise.
    """

    model_config = ConfigDict(frozen=True)

    slot: KeychainSlot
    success: bool
    error: str | None = None


class Credentials(BaseModel):
    """Resolved credentials passed explicitly to components that call the API.

    Attributes:
        access_token: Bearer token for the Management API.
        domain: Tenant domain the token was issued for.
        refresh_token: Refresh token, if the grant included offline access.
        expires_at: Access token expiry in epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    domain: str
    refresh_token: str | None = None
    expires_at: int | None = None

    def __repr__(self) -> str:
        return (
            f"Credentials(domain={self.domain!r}, expires_at={self.expires_at!r}, "
            f"has_refresh_token={self.refresh_token is not None})"
        )

    __str__ = __repr__


# ============================================================================
# Secret backends
# ============================================================================


class SecretBackend(ABC):
    """Raw key/value secret storage. Methods may raise; CredentialStore catches."""

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        """Store a secret under name."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the secret stored under name, or None."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete a secret. Returns False if nothing was stored."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable backend description for status output."""


class KeyringBackend(SecretBackend):
    """Secrets in the OS keychain via the keyring library."""

    def __init__(self, service: str = KEYCHAIN_SERVICE_NAME) -> None:
        self._service = service

    def set(self, name: str, value: str) -> None:
        keyring.set_password(self._service, name, value)

    def get(self, name: str) -> str | None:
        return keyring.get_password(self._service, name)

    def delete(self, name: str) -> bool:
        try:
            keyring.delete_password(self._service, name)
        except PasswordDeleteError:
            return False
        return True

    @property
    def description(self) -> str:
        return f"keychain ({describe_keyring_backend()}, service '{self._service}')"


class EncryptedFileBackend(SecretBackend):
    """Fallback secret storage using one Fernet-encrypted file per slot.

    Uses symmetric encryption with a key derived from machine-specific
    identifiers. This is less secure than the keychain but works when
    keyring is unavailable.

    Key derivation uses:
    - Hostname
    - Machine ID (platform-specific)
    - Static salt for this application
    """

    def __init__(self, storage_dir: Path | str = ENCRYPTED_STORE_DIR) -> None:
        self._storage_dir = Path(storage_dir)
        self._key: bytes | None = None

    def _path(self, name: str) -> Path:
        return self._storage_dir / f"{name}.enc"

    def _get_machine_id(self) -> str:
        """Get platform-specific machine identifier."""
        system = platform.system()

        if system == "Darwin":
            try:
                result = subprocess.run(
                    ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                for line in result.stdout.split("\n"):
                    if "IOPlatformUUID" in line:
                        parts = line.split("=")
                        if len(parts) >= 2:
                            return parts[1].strip().strip('"')
            except (subprocess.SubprocessError, OSError):
                pass

        elif system == "Linux":
            for path in ["/etc/machine-id", "/var/lib/dbus/machine-id"]:
                try:
                    with open(path) as f:
                        return f.read().strip()
                except OSError:
                    continue

        elif system == "Windows":
            try:
                winreg = __import__("winreg")
                key = winreg.OpenKey(
                    winreg.HKEY_LOCAL_MACHINE,
                    r"SOFTWARE\Microsoft\Cryptography",
                    0,
                    winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
                )
                value, _ = winreg.QueryValueEx(key, "MachineGuid")
                winreg.CloseKey(key)
                return str(value)
            except (OSError, ImportError, AttributeError):
                pass

        # Fallback: hostname (less unique but always available)
        return socket.gethostname()

    def _derive_key(self) -> bytes:
        """Derive a Fernet key from machine-specific data with PBKDF2."""
        if self._key is not None:
            return self._key

        combined = f"{self._get_machine_id()}:{socket.gethostname()}:{KEYCHAIN_SERVICE_NAME}-credentials"
        # Static salt keeps the key stable across restarts; machine data gives uniqueness
        salt = f"{KEYCHAIN_SERVICE_NAME}-v1".encode()
        key = hashlib.pbkdf2_hmac("sha256", combined.encode(), salt, iterations=100_000, dklen=32)

        self._key = base64.urlsafe_b64encode(key)
        return self._key

    def _get_fernet(self) -> "Fernet":
        from cryptography.fernet import Fernet

        return Fernet(self._derive_key())

    def set(self, name: str, value: str) -> None:
        encrypted = self._get_fernet().encrypt(value.encode())

        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._storage_dir.chmod(0o700)

        path = self._path(name)
        path.write_bytes(encrypted)
        path.chmod(0o600)

    def get(self, name: str) -> str | None:
        path = self._path(name)
        if not path.exists():
            return None
        return self._get_fernet().decrypt(path.read_bytes()).decode()

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not path.exists():
            return False
        path.unlink()
        return True

    @property
    def description(self) -> str:
        return f"encrypted files in {self._storage_dir}"


def create_secret_backend() -> SecretBackend:
    """Create the appropriate secret backend.

    Prefers the OS keychain when available, falls back to encrypted files.
    """
    if is_keyring_available(test_service_suffix="credential-test"):
        return KeyringBackend()

    get_system_logger().warning(
        {
            "event": "keyring_fallback",
            "message": f"No usable keychain found, storing credentials in encrypted files under {ENCRYPTED_STORE_DIR}",
        }
    )
    return EncryptedFileBackend()


# ============================================================================
# Credential store
# ============================================================================


class CredentialStore:
    """Slot-oriented credential persistence.

    Usage:
        store = CredentialStore()
        store.set(KeychainSlot.ACCESS_TOKEN, token)
        creds = store.load_credentials()
    """

    def __init__(self, backend: SecretBackend | None = None) -> None:
        """Initialize the store.

        Args:
            backend: Secret backend. Resolved lazily with create_secret_backend()
                when omitted, so constructing a store never touches the OS.
        """
        self._backend = backend
        self._logger = get_system_logger()

    @property
    def backend(self) -> SecretBackend:
        if self._backend is None:
            self._backend = create_secret_backend()
        return self._backend

    def set(self, slot: KeychainSlot, value: str) -> bool:
        """Store a value in one slot.

        Returns:
            True if stored, False if the backend failed.
        """
        try:
            self.backend.set(slot.value, value)
        except Exception as e:
            self._logger.error(
                {
                    "event": "credential_write_failed",
                    "slot": slot.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Error storing {slot.value} in keychain: {e}",
                }
            )
            return False

        self._logger.debug({"event": "credential_written", "slot": slot.value})
        return True

    def get(self, slot: KeychainSlot) -> str | None:
        """Read one slot.

        Returns:
            The stored value, or None if absent or the backend failed.
        """
        try:
            return self.backend.get(slot.value)
        except Exception as e:
            self._logger.error(
                {
                    "event": "credential_read_failed",
                    "slot": slot.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Error retrieving {slot.value} from keychain: {e}",
                }
            )
            return None

    def delete(self, slot: KeychainSlot) -> SlotResult:
        """Delete one slot.

        Returns:
            SlotResult with success=True only if a stored value was removed.
        """
        try:
            removed = self.backend.delete(slot.value)
        except Exception as e:
            self._logger.error(
                {
                    "event": "credential_delete_failed",
                    "slot": slot.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Error deleting {slot.value} from keychain: {e}",
                }
            )
            return SlotResult(slot=slot, success=False, error=str(e))

        self._logger.debug(
            {
                "event": "credential_deleted",
                "slot": slot.value,
                "message": f"Deleted {slot.value} from keychain: {'Success' if removed else 'Not found'}",
            }
        )
        return SlotResult(slot=slot, success=removed)

    def delete_all(self) -> list[SlotResult]:
        """Delete every slot, attempting all four regardless of failures.

        Returns:
            One SlotResult per slot, in KeychainSlot order.
        """
        results = [self.delete(slot) for slot in ALL_SLOTS]

        success_count = sum(1 for r in results if r.success)
        self._logger.info(
            {
                "event": "credentials_cleared",
                "cleared": success_count,
                "total": len(ALL_SLOTS),
                "message": f"Cleared {success_count}/{len(ALL_SLOTS)} items from keychain",
            }
        )
        return results

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def get_expires_at(self) -> int | None:
        """Read the expiry slot as epoch milliseconds.

        Returns:
            Expiry, or None if absent or not a decimal integer.
        """
        raw = self.get(KeychainSlot.TOKEN_EXPIRES_AT)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            self._logger.warning(
                {
                    "event": "credential_expiry_invalid",
                    "message": f"Stored token expiry is not an integer: {raw!r}",
                }
            )
            return None

    def set_expires_at(self, expires_at_ms: int) -> bool:
        return self.set(KeychainSlot.TOKEN_EXPIRES_AT, str(int(expires_at_ms)))

    def load_credentials(self) -> Credentials | None:
        """Read the full credential record.

        Returns:
            Credentials if both access token and domain are stored, else None.
        """
        access_token = self.get(KeychainSlot.ACCESS_TOKEN)
        domain = self.get(KeychainSlot.DOMAIN)
        if not access_token or not domain:
            return None

        return Credentials(
            access_token=access_token,
            domain=domain,
            refresh_token=self.get(KeychainSlot.REFRESH_TOKEN),
            expires_at=self.get_expires_at(),
        )
