"""OAuth flows and token lifecycle.

This module provides:
- Device authorization flow for interactive CLI login
- Client-credentials grant for headless installs
- Expiry checks, refresh and revocation (TokenManager)
- Token claim decoding for scope checks
"""

from auth0_mcp.security.auth.claims import (
    TokenClaims,
    TokenDecodeError,
    TokenDecoder,
    UnverifiedClaimsDecoder,
)
from auth0_mcp.security.auth.client_credentials import (
    ClientCredentialsConfig,
    request_client_credentials_authorization,
)
from auth0_mcp.security.auth.device_flow import (
    DeviceCodeResponse,
    DeviceFlow,
    request_authorization,
)
from auth0_mcp.security.auth.token_parser import TokenSet, parse_token_response
from auth0_mcp.security.auth.token_refresh import TokenManager, refresh_tokens

__all__ = [
    # Claims
    "TokenClaims",
    "TokenDecodeError",
    "TokenDecoder",
    "UnverifiedClaimsDecoder",
    # Device flow
    "DeviceCodeResponse",
    "DeviceFlow",
    "request_authorization",
    # Client credentials
    "ClientCredentialsConfig",
    "request_client_credentials_authorization",
    # Token lifecycle
    "TokenManager",
    "TokenSet",
    "parse_token_response",
    "refresh_tokens",
]
