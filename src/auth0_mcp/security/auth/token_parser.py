"""Shared OAuth token response parsing and persistence.

Used by the device flow, the client-credentials grant, and token refresh so
all three write the credential record the same way.
"""

from __future__ import annotations

__all__ = [
    "TokenSet",
    "derive_domain_from_token",
    "parse_token_response",
    "store_token_set",
]

import time
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict

from auth0_mcp.constants import MANAGEMENT_API_PATH
from auth0_mcp.security.auth.claims import TokenDecodeError, UnverifiedClaimsDecoder
from auth0_mcp.security.credential_store import CredentialStore, KeychainSlot
from auth0_mcp.telemetry.system.system_logger import get_system_logger


class TokenSet(BaseModel):
    """Successful token endpoint response.

    Attributes:
        access_token: Bearer token.
        refresh_token: Present only for grants with offline_access.
        expires_in: Lifetime in seconds, if the provider sent one.
        expires_at: Absolute expiry in epoch milliseconds, computed at parse time.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    expires_at: int | None = None

    def __repr__(self) -> str:
        return f"TokenSet(expires_at={self.expires_at!r}, has_refresh_token={self.refresh_token is not None})"

    __str__ = __repr__


def parse_token_response(data: dict[str, Any], now_ms: int | None = None) -> TokenSet:
    """Parse a successful OAuth token response into a TokenSet.

    Args:
        data: Token response JSON (must contain access_token).
        now_ms: Current time in epoch milliseconds (for testing).

    Returns:
        TokenSet with expires_at = now + expires_in * 1000 when expires_in is present.

    Raises:
        KeyError: If access_token is missing.
    """
    now = now_ms if now_ms is not None else int(time.time() * 1000)

    expires_in = data.get("expires_in")
    expires_in_int = int(expires_in) if isinstance(expires_in, (int, float)) else None
    expires_at = now + expires_in_int * 1000 if expires_in_int is not None else None

    return TokenSet(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_in=expires_in_int,
        expires_at=expires_at,
    )


def derive_domain_from_token(access_token: str) -> str:
    """Return the tenant host from a Management API access token.

    The tenant is the host of the audience whose path is "/api/v2/".

    Raises:
        TokenDecodeError: If the token cannot be decoded or has no such audience.
    """
    claims = UnverifiedClaimsDecoder().decode(access_token)

    for audience in claims.aud:
        parsed = urlparse(audience)
        if parsed.path == MANAGEMENT_API_PATH and parsed.netloc:
            return parsed.netloc

    raise TokenDecodeError("No Management API audience found in token")


def store_token_set(store: CredentialStore, token_set: TokenSet, domain: str) -> bool:
    """Persist a token set and its domain slot by slot.

    This records a new session: optional slots the token set does not carry
    are cleared so nothing from a previous session survives.

    Returns:
        True if every write succeeded.
    """
    logger = get_system_logger()

    results = {
        KeychainSlot.ACCESS_TOKEN: store.set(KeychainSlot.ACCESS_TOKEN, token_set.access_token),
        KeychainSlot.DOMAIN: store.set(KeychainSlot.DOMAIN, domain),
    }
    if token_set.refresh_token:
        results[KeychainSlot.REFRESH_TOKEN] = store.set(KeychainSlot.REFRESH_TOKEN, token_set.refresh_token)
    else:
        store.delete(KeychainSlot.REFRESH_TOKEN)
    if token_set.expires_at is not None:
        results[KeychainSlot.TOKEN_EXPIRES_AT] = store.set_expires_at(token_set.expires_at)
    else:
        store.delete(KeychainSlot.TOKEN_EXPIRES_AT)

    failed = [slot.value for slot, ok in results.items() if not ok]
    if failed:
        logger.error(
            {
                "event": "token_store_incomplete",
                "failed_slots": failed,
                "message": f"Could not store {', '.join(failed)} in keychain",
            }
        )
        return False

    logger.debug(
        {
            "event": "token_stored",
            "slots": [slot.value for slot in results],
            "has_refresh_token": token_set.refresh_token is not None,
        }
    )
    return True
