"""Application-wide constants for auth0-mcp.

Constants that define application behavior.
For user-configurable settings, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "MCP_SERVER_NAME",
    "DEBUG_ENV_VAR",
    # Secure storage
    "KEYCHAIN_SERVICE_NAME",
    "ENCRYPTED_STORE_DIR",
    # OAuth provider defaults
    "DEFAULT_AUTH0_DOMAIN",
    "DEFAULT_CLIENT_ID",
    "DEFAULT_AUDIENCE",
    "OFFLINE_ACCESS_SCOPE",
    "MANAGEMENT_API_PATH",
    "DEVICE_CODE_GRANT_TYPE",
    # OAuth device flow
    "OAUTH_CLIENT_TIMEOUT_SECONDS",
    "DEVICE_FLOW_POLL_INTERVAL_SECONDS",
    "DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS",
    "DEVICE_FLOW_TIMEOUT_SECONDS",
    # Token lifecycle
    "TOKEN_EXPIRY_BUFFER_SECONDS",
    # Authorization
    "UNAUTHORIZED_CODE",
    # Management API calls
    "MANAGEMENT_API_TIMEOUT_SECONDS",
]

import os

from platformdirs import user_config_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names, logger names, etc.
APP_NAME: str = "auth0-mcp"

# Server key written into MCP client config files (mcpServers.<name>)
MCP_SERVER_NAME: str = "auth0"

# Setting this to "true" forces DEBUG logging regardless of config
DEBUG_ENV_VAR: str = "AUTH0_MCP_DEBUG"

# ============================================================================
# Secure Storage
# ============================================================================

# Keychain service namespace. Slot names live in security/credential_store.py.
KEYCHAIN_SERVICE_NAME: str = "auth0-mcp"

# Directory for the Fernet-encrypted fallback store (used when no keyring backend).
# Resolved with os.path.realpath() to prevent symlink redirection.
ENCRYPTED_STORE_DIR: str = os.path.join(os.path.realpath(user_config_dir(APP_NAME)), "credentials")

# ============================================================================
# OAuth Provider Defaults
# ============================================================================

# Public device-flow tenant and CLI client. Both are overridable in config.json.
DEFAULT_AUTH0_DOMAIN: str = "auth0-tus1.tus.auth0.com"
DEFAULT_CLIENT_ID: str = "iB6OlqHQDHN1dbwapBZ0cWPIErUfLxQT"

# Wildcard Management API audience accepted by the device-flow tenant. The issued
# token carries the concrete audience of the tenant the user picked.
DEFAULT_AUDIENCE: str = "https://*.tus.auth0.com/api/v2/"

# Requested alongside Management API scopes so a refresh token is issued
OFFLINE_ACCESS_SCOPE: str = "offline_access"

# Audience path of the Management API. The tenant is the host of the audience
# URL whose path matches this value.
MANAGEMENT_API_PATH: str = "/api/v2/"

DEVICE_CODE_GRANT_TYPE: str = "urn:ietf:params:oauth:grant-type:device_code"

# ============================================================================
# OAuth Device Flow (RFC 8628)
# ============================================================================

# Timeout for OAuth HTTP requests (device code, token polling, refresh, revoke)
OAUTH_CLIENT_TIMEOUT_SECONDS: int = 30

# Fixed polling interval between token endpoint requests (seconds)
DEVICE_FLOW_POLL_INTERVAL_SECONDS: int = 5

# RFC 8628 section 3.5: on slow_down the interval grows by 5 seconds
DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS: int = 5

# Deadline for the whole poll loop (seconds). Auth0 device codes live 15 minutes.
DEVICE_FLOW_TIMEOUT_SECONDS: int = 900

# ============================================================================
# Token Lifecycle
# ============================================================================

# A token expiring within this window is treated as already expired (seconds)
TOKEN_EXPIRY_BUFFER_SECONDS: int = 300

# ============================================================================
# Authorization
# ============================================================================

# JSON-RPC error code for denied tool calls (server-defined range -32000..-32099)
UNAUTHORIZED_CODE: int = -32001

# ============================================================================
# Management API Calls
# ============================================================================

MANAGEMENT_API_TIMEOUT_SECONDS: float = 30.0
