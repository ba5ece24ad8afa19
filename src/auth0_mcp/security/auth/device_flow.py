"""OAuth Device Authorization Flow (RFC 8628) for CLI authentication.

Implements the device authorization grant for command-line authentication.
User runs `auth0-mcp init`, sees a code, confirms, a browser opens to the
verification page, and tokens are stored in the credential store.

Flow:
1. Request device code from the provider
2. Display the user code and wait for the operator to confirm
3. Poll the token endpoint until the provider returns a terminal answer
4. Derive the tenant domain from the access token and store the credential record

State machine:
    INIT -> CODE_REQUESTED -> AWAITING_USER_AUTH -> AUTHORIZED | DENIED | EXPIRED | ERROR
"""

from __future__ import annotations

__all__ = [
    "DeviceCodeResponse",
    "DeviceFlow",
    "DeviceFlowState",
    "request_authorization",
]

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import httpx

from auth0_mcp.config import DeviceFlowConfig, OAuthConfig
from auth0_mcp.constants import (
    DEVICE_CODE_GRANT_TYPE,
    DEVICE_FLOW_POLL_INTERVAL_SECONDS,
    DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS,
    OAUTH_CLIENT_TIMEOUT_SECONDS,
)
from auth0_mcp.exceptions import (
    DeviceFlowCancelledError,
    DeviceFlowDeniedError,
    DeviceFlowError,
    DeviceFlowExpiredError,
)
from auth0_mcp.security.auth.claims import TokenDecodeError
from auth0_mcp.security.auth.token_parser import (
    TokenSet,
    derive_domain_from_token,
    parse_token_response,
    store_token_set,
)
from auth0_mcp.security.credential_store import CredentialStore, Credentials
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name, redact_token

# (user_code, verification_uri, verification_uri_complete)
DisplayCallback = Callable[[str, str, str | None], None]


class DeviceFlowState(str, Enum):
    INIT = "init"
    CODE_REQUESTED = "code_requested"
    AWAITING_USER_AUTH = "awaiting_user_auth"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    EXPIRED = "expired"
    ERROR = "error"


@dataclass
class DeviceCodeResponse:
    """Response from device authorization request.

    Attributes:
        device_code: Code used to poll for tokens (don't show to user).
        user_code: Code user confirms in browser (e.g., "HDFC-LQRT").
        verification_uri: URL user opens to authenticate.
        verification_uri_complete: URL with code embedded (optional).
        expires_in: Seconds until codes expire.
        interval: Provider's minimum polling interval in seconds.
    """

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str | None
    expires_in: int
    interval: int

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "DeviceCodeResponse":
        """Parse from the provider response."""
        complete = data.get("verification_uri_complete")
        return cls(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data.get("verification_uri") or complete or "",
            verification_uri_complete=complete,
            expires_in=int(data.get("expires_in", 0)),
            interval=int(data.get("interval", DEVICE_FLOW_POLL_INTERVAL_SECONDS)),
        )


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class DeviceFlow:
    """OAuth Device Authorization Flow implementation.

    Usage:
        with DeviceFlow(oauth_config) as flow:
            device_code = flow.request_device_code(scopes=["read:clients"])
            show(device_code.user_code, device_code.verification_uri)
            token_set = flow.poll_for_token(device_code)
    """

    def __init__(
        self,
        config: OAuthConfig,
        flow_config: DeviceFlowConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize device flow.

        Args:
            config: OAuth provider configuration.
            flow_config: Polling settings (defaults if omitted).
            http_client: Optional httpx client (for testing).
        """
        self._config = config
        self._flow_config = flow_config or DeviceFlowConfig()
        self._client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
        self._owns_client = http_client is None
        self._logger = get_system_logger()
        self.state = DeviceFlowState.INIT

    def __enter__(self) -> "DeviceFlow":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client:
            self._client.close()

    def request_device_code(self, scopes: list[str] | None = None) -> DeviceCodeResponse:
        """Request a device code from the provider.

        Args:
            scopes: Scopes to request. None uses the configured default;
                an empty list requests no scopes.

        Returns:
            DeviceCodeResponse with user_code and verification_uri.

        Raises:
            DeviceFlowError: If the request fails or the provider returns an error.
        """
        requested = self._config.scopes if scopes is None else scopes
        payload: dict[str, str] = {"client_id": self._config.client_id}
        if self._config.audience:
            payload["audience"] = self._config.audience
        if requested:
            payload["scope"] = " ".join(requested)

        self._logger.debug(
            {
                "event": "device_code_requested",
                "endpoint": self._config.device_code_url,
                "scope_count": len(requested),
            }
        )

        try:
            response = self._client.post(self._config.device_code_url, data=payload)
        except httpx.HTTPError as e:
            self.state = DeviceFlowState.ERROR
            raise DeviceFlowError(f"HTTP error requesting device code: {e}") from e

        body = _json_body(response)
        if "error" in body or response.status_code >= 400:
            self.state = DeviceFlowState.ERROR
            error_msg = body.get("error_description") or body.get("error") or f"HTTP {response.status_code}"
            raise DeviceFlowError(f"Failed to request device code: {error_msg}")

        try:
            device_code = DeviceCodeResponse.from_response(body)
        except (KeyError, TypeError, ValueError) as e:
            self.state = DeviceFlowState.ERROR
            raise DeviceFlowError(f"Malformed device code response: missing {e}") from e

        self.state = DeviceFlowState.CODE_REQUESTED
        return device_code

    def poll_for_token(
        self,
        device_code: DeviceCodeResponse,
        *,
        timeout: int | None = None,
        cancel: threading.Event | None = None,
        on_poll: Callable[[], None] | None = None,
    ) -> TokenSet:
        """Poll token endpoint until the provider returns a terminal answer.

        The first request is sent immediately; later requests wait one
        interval. authorization_pending keeps polling, slow_down keeps
        polling with the interval raised by 5 seconds, any other error ends
        the loop. Network errors and HTTP 5xx answers without an OAuth error
        are logged and retried.

        Args:
            device_code: Response from request_device_code().
            timeout: Deadline in seconds. Defaults to the configured timeout;
                None in the config means no deadline.
            cancel: Event checked between iterations; when set the loop stops.
            on_poll: Optional callback called before each request.

        Returns:
            TokenSet from the provider.

        Raises:
            DeviceFlowDeniedError: If user denies authorization.
            DeviceFlowExpiredError: If the device code expires or the deadline passes.
            DeviceFlowCancelledError: If cancel is set.
            DeviceFlowError: For other provider errors.
        """
        self.state = DeviceFlowState.AWAITING_USER_AUTH

        interval = max(self._flow_config.poll_interval_seconds, device_code.interval)
        limit = timeout if timeout is not None else self._flow_config.timeout_seconds
        deadline = time.monotonic() + limit if limit is not None else None
        attempt = 0

        while True:
            if attempt > 0:
                self._wait(interval, cancel)
            if cancel is not None and cancel.is_set():
                self.state = DeviceFlowState.ERROR
                raise DeviceFlowCancelledError("Device authorization was cancelled.")
            if deadline is not None and time.monotonic() >= deadline:
                self.state = DeviceFlowState.EXPIRED
                raise DeviceFlowExpiredError(
                    f"Authentication timed out after {limit} seconds. Please run 'init' again."
                )

            attempt += 1
            if on_poll:
                on_poll()

            try:
                response = self._client.post(
                    self._config.token_url,
                    data={
                        "client_id": self._config.client_id,
                        "device_code": device_code.device_code,
                        "grant_type": DEVICE_CODE_GRANT_TYPE,
                    },
                )
            except httpx.HTTPError as e:
                self._logger.warning(
                    {
                        "event": "device_flow_poll_failed",
                        "attempt": attempt,
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "message": f"Token polling request failed, retrying: {e}",
                    }
                )
                continue

            body = _json_body(response)
            error = body.get("error")

            if not error and response.status_code >= 500:
                self._logger.warning(
                    {
                        "event": "device_flow_poll_failed",
                        "attempt": attempt,
                        "status_code": response.status_code,
                        "message": f"Token endpoint returned HTTP {response.status_code}, retrying",
                    }
                )
                continue

            if not error:
                if "access_token" not in body:
                    self.state = DeviceFlowState.ERROR
                    raise DeviceFlowError(
                        f"Token endpoint returned no access token (HTTP {response.status_code})"
                    )
                self.state = DeviceFlowState.AUTHORIZED
                token_set = parse_token_response(body)
                self._logger.debug(
                    {
                        "event": "device_flow_authorized",
                        "attempts": attempt,
                        "access_token": redact_token(token_set.access_token),
                    }
                )
                return token_set

            if error == "authorization_pending":
                continue

            if error == "slow_down":
                interval += DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS
                self._logger.debug({"event": "device_flow_slow_down", "interval": interval})
                continue

            description = body.get("error_description") or error
            self._logger.warning(
                {
                    "event": "device_flow_failed",
                    "error": error,
                    "attempts": attempt,
                    "message": f"Device authorization failed: {description}",
                }
            )

            if error == "access_denied":
                self.state = DeviceFlowState.DENIED
                raise DeviceFlowDeniedError(f"Authorization was denied: {description}")

            if error == "expired_token":
                self.state = DeviceFlowState.EXPIRED
                raise DeviceFlowExpiredError("Device code expired. Please run 'init' again.")

            self.state = DeviceFlowState.ERROR
            raise DeviceFlowError(f"Token request failed: {description}")

    @staticmethod
    def _wait(interval: float, cancel: threading.Event | None) -> None:
        if cancel is None:
            time.sleep(interval)
        else:
            cancel.wait(interval)


def request_authorization(
    config: OAuthConfig,
    store: CredentialStore,
    display_callback: DisplayCallback,
    *,
    scopes: list[str] | None = None,
    flow_config: DeviceFlowConfig | None = None,
    cancel: threading.Event | None = None,
    poll_callback: Callable[[], None] | None = None,
    http_client: httpx.Client | None = None,
) -> Credentials:
    """Run the complete device flow and persist the credential record.

    Args:
        config: OAuth provider configuration.
        store: Credential store receiving the tokens.
        display_callback: Called with (user_code, verification_uri,
            verification_uri_complete). It shows the code and returns only
            after the operator has confirmed; it owns opening the browser.
        scopes: Scopes to request (None uses config.scopes).
        flow_config: Polling settings.
        cancel: Cancellation event honored between poll iterations.
        poll_callback: Optional callback called on each poll iteration.
        http_client: Optional httpx client (for testing).

    Returns:
        Credentials as stored.

    Raises:
        DeviceFlowError: If authentication fails, the tenant cannot be
            derived from the token, or the credentials cannot be stored.
    """
    logger = get_system_logger()

    with DeviceFlow(config, flow_config, http_client=http_client) as flow:
        device_code = flow.request_device_code(scopes)

        display_callback(
            device_code.user_code,
            device_code.verification_uri,
            device_code.verification_uri_complete,
        )

        token_set = flow.poll_for_token(device_code, cancel=cancel, on_poll=poll_callback)

    try:
        domain = derive_domain_from_token(token_set.access_token)
    except TokenDecodeError as e:
        raise DeviceFlowError(f"Failed to extract tenant from access token: {e}") from e

    if not store_token_set(store, token_set, domain):
        raise DeviceFlowError("Authorization succeeded but credentials could not be stored.")

    logger.info(
        {
            "event": "device_flow_completed",
            "domain": mask_tenant_name(domain),
            "has_refresh_token": token_set.refresh_token is not None,
            "message": f"Authenticated with tenant {mask_tenant_name(domain)}",
        }
    )

    return Credentials(
        access_token=token_set.access_token,
        domain=domain,
        refresh_token=token_set.refresh_token,
        expires_at=token_set.expires_at,
    )
