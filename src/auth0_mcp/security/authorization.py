"""Authorization gate for MCP tool calls.

The server consults is_authorized() before dispatching each tool call.
Schemes:
- none:    always authorized (open/local access, explicitly configured)
- bearer:  "Bearer <token>" header, or the locally stored access token when no
           header was sent. Compared to the configured token if one is set.
           Required scopes are checked against the token's claims.
- api-key: bare key or "Bearer <key>", compared to the configured key.
Anything else is denied.

Every denial and every scope check is logged. Raw tokens never appear in
log output.
"""

from __future__ import annotations

__all__ = [
    "AuthScheme",
    "Authorization",
    "parse_bearer_header",
]

import hmac
from collections.abc import Callable, Sequence
from enum import Enum

from auth0_mcp.config import AuthorizationConfig
from auth0_mcp.security.auth.claims import TokenDecodeError, TokenDecoder, UnverifiedClaimsDecoder
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.utils.logging.logging_helpers import redact_token

BEARER_PREFIX = "Bearer"


class AuthScheme(str, Enum):
    NONE = "none"
    BEARER = "bearer"
    API_KEY = "api-key"


def parse_bearer_header(header: str) -> str | None:
    """Return the token from "Bearer <token>", or None if malformed."""
    parts = header.strip().split()
    if len(parts) != 2 or parts[0] != BEARER_PREFIX or not parts[1]:
        return None
    return parts[1]


def _constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode(), b.encode())


class Authorization:
    """Per-request authorization decision.

    Usage:
        gate = Authorization(config.authorization, token_provider=manager.get_valid_access_token)
        if not gate.is_authorized(tool.required_scopes, request_headers.get("authorization")):
            raise UnauthorizedToolCallError(...)
    """

    def __init__(
        self,
        config: AuthorizationConfig,
        *,
        token_provider: Callable[[], str | None] | None = None,
        decoder: TokenDecoder | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            config: Scheme, expected token and scope settings.
            token_provider: Returns the locally stored access token; used by
                the bearer scheme when a request carries no header.
            decoder: Token claim decoder for scope checks.
        """
        self._config = config
        self._token_provider = token_provider
        self._decoder: TokenDecoder = decoder or UnverifiedClaimsDecoder()
        self._logger = get_system_logger()
        self._logger.debug({"event": "authorization_initialized", "type": config.type})

    @property
    def scheme(self) -> str:
        return self._config.type

    def is_authorized(self, request_scopes: Sequence[str] = (), auth_header: str | None = None) -> bool:
        """Decide whether a request may proceed. Never raises.

        Args:
            request_scopes: Scopes the requested tool needs.
            auth_header: Value of the Authorization header, if any.

        Returns:
            True if the request is authorized.
        """
        try:
            if self.scheme == AuthScheme.NONE.value:
                return True
            if self.scheme == AuthScheme.BEARER.value:
                return self._validate_bearer(auth_header, list(request_scopes))
            if self.scheme == AuthScheme.API_KEY.value:
                return self._validate_api_key(auth_header)
        except Exception as e:
            self._deny("authorization_error", f"Authorization check failed: {e}")
            return False

        self._deny("unsupported_scheme", f"Unsupported authorization type: {self.scheme}")
        return False

    def _deny(self, reason: str, message: str, **details: object) -> None:
        self._logger.warning(
            {
                "event": "authorization_denied",
                "scheme": self.scheme,
                "reason": reason,
                "message": message,
                **details,
            }
        )

    def _validate_bearer(self, auth_header: str | None, request_scopes: list[str]) -> bool:
        if not auth_header:
            stored = self._token_provider() if self._token_provider else None
            if not stored:
                self._deny("no_credentials", "No authorization header provided and no stored token found")
                return False
            auth_header = f"{BEARER_PREFIX} {stored}"

        token = parse_bearer_header(auth_header)
        if token is None:
            self._deny("malformed_header", "Invalid authorization header format")
            return False

        expected = self._config.token
        if expected and not _constant_time_equals(token, expected):
            self._deny("token_mismatch", "Token mismatch", token=redact_token(token))
            return False

        return self._check_scopes(token, request_scopes)

    def _check_scopes(self, token: str, request_scopes: list[str]) -> bool:
        required = list(dict.fromkeys([*self._config.required_scopes, *request_scopes]))
        if not required:
            return True

        if not self._config.enforce_scopes:
            self._logger.info(
                {
                    "event": "scope_check",
                    "enforced": False,
                    "required_scopes": required,
                    "message": f"Required scopes (not enforced): {', '.join(required)}",
                }
            )
            return True

        try:
            claims = self._decoder.decode(token)
        except TokenDecodeError as e:
            self._deny("undecodable_token", f"Cannot verify scopes: {e}", token=redact_token(token))
            return False

        missing = sorted(set(required) - claims.scopes)
        self._logger.info(
            {
                "event": "scope_check",
                "enforced": True,
                "required_scopes": required,
                "missing_scopes": missing,
                "subject": claims.sub,
            }
        )
        if missing:
            self._deny(
                "insufficient_scope",
                f"Token is missing required scopes: {', '.join(missing)}",
                missing_scopes=missing,
            )
            return False
        return True

    def _validate_api_key(self, auth_header: str | None) -> bool:
        if not auth_header:
            self._deny("no_credentials", "No authorization header provided")
            return False

        expected = self._config.token
        if not expected:
            self._deny("not_configured", "API key authorization is enabled but no key is configured")
            return False

        candidate = auth_header.strip()
        if candidate.startswith(f"{BEARER_PREFIX} "):
            parsed = parse_bearer_header(candidate)
            if parsed is None:
                self._deny("malformed_header", "Invalid API key format")
                return False
            candidate = parsed

        if not _constant_time_equals(candidate, expected):
            self._deny("key_mismatch", "API key mismatch")
            return False
        return True
