"""OAuth client-credentials grant for headless installations.

Intended for environments that cannot complete the interactive device flow
(private cloud tenants, CI machines). One POST to the token endpoint; the
result is stored in the same slots the device flow uses.
"""

from __future__ import annotations

__all__ = [
    "ClientCredentialsConfig",
    "request_client_credentials_authorization",
]

import httpx
from pydantic import BaseModel, Field, SecretStr, field_validator

from auth0_mcp.config import normalize_domain
from auth0_mcp.constants import MANAGEMENT_API_PATH, OAUTH_CLIENT_TIMEOUT_SECONDS
from auth0_mcp.exceptions import ClientCredentialsError
from auth0_mcp.security.auth.token_parser import parse_token_response, store_token_set
from auth0_mcp.security.credential_store import CredentialStore, Credentials
from auth0_mcp.telemetry.system.system_logger import get_system_logger


class ClientCredentialsConfig(BaseModel):
    """Inputs for the client-credentials grant.

    Attributes:
        domain: Tenant domain, e.g. "my-tenant.us.auth0.com".
        client_id: Machine-to-machine application client ID.
        client_secret: Application secret (never logged).
        audience: API audience. Defaults to the tenant's Management API.
    """

    domain: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: SecretStr
    audience: str | None = None

    @field_validator("domain")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        return normalize_domain(value)

    @property
    def resolved_audience(self) -> str:
        return self.audience or f"https://{self.domain}{MANAGEMENT_API_PATH}"

    @property
    def token_url(self) -> str:
        return f"https://{self.domain}/oauth/token"


def request_client_credentials_authorization(
    config: ClientCredentialsConfig,
    store: CredentialStore,
    http_client: httpx.Client | None = None,
) -> Credentials:
    """Obtain a token with the client-credentials grant and store it.

    The configured domain is stored as-is; it is not derived from the token.

    Args:
        config: Client credentials and tenant.
        store: Credential store receiving the token.
        http_client: Optional httpx client (for testing).

    Returns:
        Credentials as stored.

    Raises:
        ClientCredentialsError: On provider error, network failure, or store failure.
    """
    logger = get_system_logger()
    client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
    owns_client = http_client is None

    logger.info(
        {
            "event": "client_credentials_started",
            "message": "Initiating client credentials flow authentication...",
        }
    )

    try:
        response = client.post(
            config.token_url,
            data={
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "grant_type": "client_credentials",
                "audience": config.resolved_audience,
            },
            headers={"Accept": "application/json"},
        )
        body = response.json()
    except httpx.HTTPError as e:
        raise ClientCredentialsError(f"HTTP error during client credentials request: {e}") from e
    except ValueError as e:
        raise ClientCredentialsError(f"Token endpoint returned invalid JSON: {e}") from e
    finally:
        if owns_client:
            client.close()

    if not isinstance(body, dict) or body.get("error") or "access_token" not in body:
        error = body.get("error_description") or body.get("error") if isinstance(body, dict) else None
        logger.error(
            {
                "event": "client_credentials_failed",
                "error": error,
                "message": f"Client credentials authentication failed: {error or 'no access token'}",
            }
        )
        raise ClientCredentialsError(f"Client credentials authentication failed: {error or 'no access token'}")

    token_set = parse_token_response(body)
    if not store_token_set(store, token_set, config.domain):
        raise ClientCredentialsError("Authentication succeeded but credentials could not be stored.")

    logger.info(
        {
            "event": "client_credentials_completed",
            "message": f"Authenticated to {config.domain} using client credentials",
        }
    )

    return Credentials(
        access_token=token_set.access_token,
        domain=config.domain,
        refresh_token=token_set.refresh_token,
        expires_at=token_set.expires_at,
    )
