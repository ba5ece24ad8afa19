"""Keyring availability probe.

Used to choose between the OS keychain and the encrypted-file fallback.
"""

from __future__ import annotations

__all__ = [
    "describe_keyring_backend",
    "is_keyring_available",
]

import keyring
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import KeyringError

from auth0_mcp.constants import KEYCHAIN_SERVICE_NAME
from auth0_mcp.telemetry.system.system_logger import get_system_logger


def is_keyring_available(test_service_suffix: str = "test") -> bool:
    """Check if keyring backend is available and functional.

    Performs a test write/read/delete cycle to verify the keyring
    is working correctly.

    Args:
        test_service_suffix: Suffix for the test service name.
            Default "test" creates "auth0-mcp-test" service.

    Returns:
        True if keyring can store/retrieve secrets.
    """
    logger = get_system_logger()

    try:
        backend = keyring.get_keyring()
        if isinstance(backend, FailKeyring):
            logger.debug(
                {
                    "event": "keyring_unavailable",
                    "reason": "fail_backend",
                    "message": "Keyring using FailKeyring backend (no usable backend found)",
                }
            )
            return False

        test_service = f"{KEYCHAIN_SERVICE_NAME}-{test_service_suffix}"
        test_user = "availability-check"
        test_value = "test"

        keyring.set_password(test_service, test_user, test_value)
        result = keyring.get_password(test_service, test_user)
        keyring.delete_password(test_service, test_user)

        return result == test_value

    except KeyringError as e:
        logger.debug(
            {
                "event": "keyring_unavailable",
                "reason": "keyring_error",
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return False
    except Exception as e:
        # DBus errors on Linux, permission issues; the probe must never crash
        logger.debug(
            {
                "event": "keyring_unavailable",
                "reason": "unexpected_error",
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return False


def describe_keyring_backend() -> str:
    """Return the class name of the active keyring backend."""
    return type(keyring.get_keyring()).__name__
