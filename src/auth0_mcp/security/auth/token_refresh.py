"""Token validity checks, refresh, and revocation.

When the access token is close to expiry, the refresh token is exchanged
for a new one without user interaction. The credential store is the only
source of truth and is read fresh on every check.

Flow:
1. is_token_expired() compares now + buffer against the stored expiry
2. refresh_access_token() exchanges the stored refresh token
3. New access token, domain and expiry are written back; the refresh token
   is replaced only when the provider rotates it

All TokenManager methods are library-style: they never raise and return
None/False so the server can fail secure.
"""

from __future__ import annotations

__all__ = [
    "TokenManager",
    "TokenRefreshError",
    "TokenRefreshExpiredError",
    "refresh_tokens",
]

import time

import httpx

from auth0_mcp.config import OAuthConfig, RefreshPolicy, TokenConfig
from auth0_mcp.constants import APP_NAME, OAUTH_CLIENT_TIMEOUT_SECONDS
from auth0_mcp.exceptions import AuthenticationError
from auth0_mcp.security.auth.claims import TokenDecodeError
from auth0_mcp.security.auth.token_parser import (
    TokenSet,
    derive_domain_from_token,
    parse_token_response,
)
from auth0_mcp.security.credential_store import CredentialStore, Credentials, KeychainSlot
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.utils.logging.logging_helpers import redact_token


class TokenRefreshError(AuthenticationError):
    """Token refresh failed."""


class TokenRefreshExpiredError(TokenRefreshError):
    """Refresh token has expired or was revoked - user must re-authenticate."""


def refresh_tokens(
    config: OAuthConfig,
    refresh_token: str,
    http_client: httpx.Client | None = None,
) -> TokenSet:
    """Exchange a refresh token using the refresh_token grant.

    Args:
        config: OAuth provider configuration.
        refresh_token: Stored refresh token.
        http_client: Optional httpx client (for testing).

    Returns:
        New TokenSet.

    Raises:
        TokenRefreshExpiredError: If the refresh token is no longer valid.
        TokenRefreshError: For other refresh failures.
    """
    client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
    owns_client = http_client is None

    try:
        response = client.post(
            config.token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": config.client_id,
                "refresh_token": refresh_token,
            },
        )

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        error = body.get("error")
        if not error and "access_token" in body:
            return parse_token_response(body)

        error_desc = body.get("error_description") or error or f"HTTP {response.status_code}"
        if error in ("invalid_grant", "expired_token"):
            raise TokenRefreshExpiredError(
                f"Refresh token is no longer valid. Please run '{APP_NAME} init' to re-authenticate."
            )
        raise TokenRefreshError(f"Token refresh failed: {error_desc}")

    except httpx.HTTPError as e:
        raise TokenRefreshError(f"HTTP error during token refresh: {e}") from e

    finally:
        if owns_client:
            client.close()


class TokenManager:
    """Expiry-aware access to the stored credential record.

    Usage:
        manager = TokenManager(store, config.oauth, config.token)
        token = manager.get_valid_access_token()
        if token is None:
            ...  # deny, ask the operator to run init
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth: OAuthConfig,
        token_config: TokenConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._store = store
        self._oauth = oauth
        self._token_config = token_config or TokenConfig()
        self._http_client = http_client
        self._logger = get_system_logger()

    @property
    def policy(self) -> RefreshPolicy:
        return self._token_config.refresh_policy

    def is_token_expired(self, buffer_seconds: int | None = None) -> bool:
        """Return True unless the stored expiry is safely in the future.

        A missing expiry, an unreadable store, or an expiry within the
        buffer window all count as expired.

        Args:
            buffer_seconds: Safety window. Defaults to the configured buffer (300s).
        """
        buffer = self._token_config.expiry_buffer_seconds if buffer_seconds is None else buffer_seconds

        try:
            expires_at = self._store.get_expires_at()
        except Exception as e:
            self._logger.warning(
                {
                    "event": "token_expiry_check_failed",
                    "error": str(e),
                    "message": f"Error checking token expiration: {e}",
                }
            )
            return True

        if expires_at is None:
            self._logger.debug({"event": "token_expiry_missing", "message": "No token expiration time found"})
            return True

        now_ms = int(time.time() * 1000)
        expired = now_ms + buffer * 1000 >= expires_at
        if expired:
            self._logger.debug(
                {
                    "event": "token_expired",
                    "expires_at": expires_at,
                    "message": "Token is expired or will expire soon",
                }
            )
        return expired

    def refresh_access_token(self) -> str | None:
        """Exchange the stored refresh token for a new access token.

        Returns:
            The new access token, or None if no refresh token is stored or
            the refresh failed for any reason.
        """
        try:
            refresh_token = self._store.get(KeychainSlot.REFRESH_TOKEN)
            if not refresh_token:
                self._logger.debug({"event": "refresh_skipped", "message": "No refresh token found in keychain"})
                return None

            self._logger.debug({"event": "refresh_started", "refresh_token": redact_token(refresh_token)})
            token_set = refresh_tokens(self._oauth, refresh_token, http_client=self._http_client)
            if not self._persist_refreshed(token_set):
                self._logger.error(
                    {
                        "event": "token_refresh_failed",
                        "error": "credential_write_failed",
                        "message": "Refreshed access token could not be stored",
                    }
                )
                return None

        except TokenRefreshError as e:
            self._logger.warning({"event": "token_refresh_failed", "error": str(e), "message": str(e)})
            return None
        except Exception as e:
            self._logger.error(
                {
                    "event": "token_refresh_failed",
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Error refreshing access token: {e}",
                }
            )
            return None

        self._logger.info(
            {
                "event": "token_refreshed",
                "rotated": token_set.refresh_token is not None,
                "message": "Successfully refreshed access token",
            }
        )
        return token_set.access_token

    def _persist_refreshed(self, token_set: TokenSet) -> bool:
        """Write the refreshed tokens. Returns False if the access token was not stored."""
        if not self._store.set(KeychainSlot.ACCESS_TOKEN, token_set.access_token):
            # The old token stays in its slot, so its expiry must not be renewed
            self._store.delete(KeychainSlot.TOKEN_EXPIRES_AT)
            if token_set.refresh_token:
                self._store.set(KeychainSlot.REFRESH_TOKEN, token_set.refresh_token)
            return False

        try:
            self._store.set(KeychainSlot.DOMAIN, derive_domain_from_token(token_set.access_token))
        except TokenDecodeError as e:
            self._logger.warning(
                {
                    "event": "refresh_domain_unchanged",
                    "error": str(e),
                    "message": "Could not derive tenant from refreshed token, keeping stored domain",
                }
            )

        # Rotation: replace only when the provider issued a new refresh token
        if token_set.refresh_token:
            self._store.set(KeychainSlot.REFRESH_TOKEN, token_set.refresh_token)

        if token_set.expires_at is not None:
            self._store.set_expires_at(token_set.expires_at)
        else:
            # Unknown expiry is treated as expired on the next check
            self._store.delete(KeychainSlot.TOKEN_EXPIRES_AT)
        return True

    def get_valid_access_token(self) -> str | None:
        """Return a non-expired access token, or None.

        With RefreshPolicy.AUTO_REFRESH an expired token is refreshed inline;
        if that fails None is returned. The stale token is never returned.
        With RefreshPolicy.REAUTHENTICATE an expired token yields None and a
        hint to run init again.
        """
        try:
            if not self.is_token_expired():
                return self._store.get(KeychainSlot.ACCESS_TOKEN)

            if self.policy is RefreshPolicy.AUTO_REFRESH:
                new_token = self.refresh_access_token()
                if new_token:
                    return new_token

            self._logger.warning(
                {
                    "event": "token_unavailable",
                    "policy": self.policy.value,
                    "message": f"Access token is expired or missing. Run '{APP_NAME} init' to re-authenticate.",
                }
            )
            return None

        except Exception as e:
            self._logger.error(
                {
                    "event": "token_lookup_failed",
                    "error": str(e),
                    "message": f"Error getting valid access token: {e}",
                }
            )
            return None

    def get_valid_credentials(self) -> Credentials | None:
        """Like get_valid_access_token(), but returns the full record."""
        token = self.get_valid_access_token()
        if token is None:
            return None

        credentials = self._store.load_credentials()
        if credentials is None or credentials.access_token != token:
            return None
        return credentials

    def revoke_refresh_token(self) -> bool:
        """Revoke the stored refresh token at the provider.

        Returns:
            True if there is nothing to revoke or the provider answered HTTP 200,
            False on any other status or failure.
        """
        refresh_token = self._store.get(KeychainSlot.REFRESH_TOKEN)
        if not refresh_token:
            self._logger.debug({"event": "revoke_skipped", "message": "No refresh token to revoke"})
            return True

        client = self._http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
        owns_client = self._http_client is None
        try:
            response = client.post(
                self._oauth.revoke_url,
                data={"client_id": self._oauth.client_id, "token": refresh_token},
            )
        except Exception as e:
            self._logger.warning(
                {
                    "event": "token_revoke_failed",
                    "error": str(e),
                    "message": f"Failed to revoke refresh token: {e}",
                }
            )
            return False
        finally:
            if owns_client:
                client.close()

        if response.status_code != 200:
            self._logger.warning(
                {
                    "event": "token_revoke_failed",
                    "status_code": response.status_code,
                    "message": f"Failed to revoke refresh token: HTTP {response.status_code}",
                }
            )
            return False

        self._logger.info({"event": "token_revoked", "message": "Refresh token revoked"})
        return True
