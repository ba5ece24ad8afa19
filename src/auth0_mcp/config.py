"""Application configuration for auth0-mcp.

Defines configuration models for the OAuth provider, the device flow, token
lifecycle policy, the authorization gate, and logging. Config is optional:
a missing file means "use defaults". When present it lives at the
OS-appropriate location (via click.get_app_dir).

Example usage:
    config = AppConfig.load_or_default(get_config_path())
    config.save_to_file(get_config_path())
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_LOG_DIR",
    "AppConfig",
    "AuthorizationConfig",
    "DeviceFlowConfig",
    "LoggingConfig",
    "OAuthConfig",
    "RefreshPolicy",
    "TokenConfig",
    "get_config_path",
    "normalize_domain",
]

import json
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from auth0_mcp.constants import (
    APP_NAME,
    DEFAULT_AUDIENCE,
    DEFAULT_AUTH0_DOMAIN,
    DEFAULT_CLIENT_ID,
    DEVICE_FLOW_POLL_INTERVAL_SECONDS,
    DEVICE_FLOW_TIMEOUT_SECONDS,
    TOKEN_EXPIRY_BUFFER_SECONDS,
)
from auth0_mcp.utils.file_helpers import get_app_dir, load_validated_json, set_secure_permissions

CONFIG_FILE_NAME = "config.json"


# =============================================================================
# Platform-specific defaults
# =============================================================================


def _get_platform_log_dir() -> str:
    """Get platform-appropriate base log directory following OS conventions.

    Platform conventions:
        - macOS: ~/Library/Logs
        - Linux: ~/.local/state (XDG Base Directory Specification for logs/state)
        - Windows: ~/AppData/Local
    """
    if sys.platform == "darwin":
        return "~/Library/Logs"
    elif sys.platform == "win32":
        return "~/AppData/Local"
    else:
        return os.environ.get("XDG_STATE_HOME", "~/.local/state")


DEFAULT_LOG_DIR = _get_platform_log_dir()


def get_config_path() -> Path:
    """Path of config.json inside the application directory."""
    return get_app_dir() / CONFIG_FILE_NAME


def normalize_domain(value: str) -> str:
    """Strip an http(s) scheme and trailing slashes from a host.

    Raises:
        ValueError: If nothing is left after stripping.
    """
    for prefix in ("https://", "http://"):
        if value.startswith(prefix):
            value = value[len(prefix) :]
    value = value.rstrip("/")
    if not value:
        raise ValueError("domain must not be empty")
    return value


# =============================================================================
# OAuth Provider
# =============================================================================


class OAuthConfig(BaseModel):
    """OAuth provider used for the device flow and token refresh.

    Attributes:
        domain: Provider host (no scheme), e.g. "auth0.auth0.com".
        client_id: Public client used by the device flow.
        audience: API audience sent with the device-code request (None omits it).
        scopes: Default scopes to request. Empty means no scopes (least privilege).
    """

    domain: str = Field(default=DEFAULT_AUTH0_DOMAIN, min_length=1)
    client_id: str = Field(default=DEFAULT_CLIENT_ID, min_length=1)
    audience: str | None = DEFAULT_AUDIENCE
    scopes: list[str] = Field(default_factory=list)

    @field_validator("domain")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        return normalize_domain(value)

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def device_code_url(self) -> str:
        return f"{self.base_url}/oauth/device/code"

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/oauth/token"

    @property
    def revoke_url(self) -> str:
        return f"{self.base_url}/oauth/revoke"


# =============================================================================
# Device Flow
# =============================================================================


class DeviceFlowConfig(BaseModel):
    """Polling behavior of the device authorization flow.

    Attributes:
        poll_interval_seconds: Delay between token endpoint requests.
            The provider's own interval wins when it is larger.
        timeout_seconds: Deadline for the whole poll loop. None polls until
            the provider returns a terminal status.
    """

    poll_interval_seconds: int = Field(default=DEVICE_FLOW_POLL_INTERVAL_SECONDS, ge=1, le=60)
    timeout_seconds: int | None = Field(default=DEVICE_FLOW_TIMEOUT_SECONDS, ge=1)


# =============================================================================
# Token Lifecycle
# =============================================================================


class RefreshPolicy(str, Enum):
    """What get_valid_access_token() does with an expired token.

    AUTO_REFRESH: exchange the refresh token inline, return None if that fails.
    REAUTHENTICATE: return None and tell the operator to run init again.
    """

    AUTO_REFRESH = "auto_refresh"
    REAUTHENTICATE = "reauthenticate"


class TokenConfig(BaseModel):
    """Token validity settings.

    Attributes:
        expiry_buffer_seconds: Tokens expiring within this window count as expired.
        refresh_policy: Behavior on expiry, see RefreshPolicy.
    """

    expiry_buffer_seconds: int = Field(default=TOKEN_EXPIRY_BUFFER_SECONDS, ge=0)
    refresh_policy: RefreshPolicy = RefreshPolicy.AUTO_REFRESH


# =============================================================================
# Authorization Gate
# =============================================================================


class AuthorizationConfig(BaseModel):
    """Per-request authorization for MCP tool calls.

    Attributes:
        type: "none" (open, local use only), "bearer", or "api-key".
        token: Expected bearer token or API key. For bearer, None accepts any
            well-formed bearer token (subject to scope checks).
        required_scopes: Scopes every request must carry, in addition to the
            scopes each tool declares.
        enforce_scopes: Decode the bearer token and require the scopes to be
            present. When False, scope checks are only logged.
    """

    type: Literal["none", "bearer", "api-key"] = "none"
    token: str | None = None
    required_scopes: list[str] = Field(default_factory=list)
    enforce_scopes: bool = True


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Logs are stored as <log_dir>/auth0-mcp/system.jsonl.

    Attributes:
        log_dir: Base directory for logs. Platform-specific default.
        log_level: DEBUG or INFO. AUTH0_MCP_DEBUG=true forces DEBUG.
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Main application configuration for auth0-mcp.

    Attributes:
        oauth: OAuth provider configuration.
        device_flow: Device flow polling settings.
        token: Token validity and refresh policy.
        authorization: Authorization gate configuration.
        logging: Logging configuration.
    """

    oauth: OAuthConfig = Field(default_factory=OAuthConfig)
    device_flow: DeviceFlowConfig = Field(default_factory=DeviceFlowConfig)
    token: TokenConfig = Field(default_factory=TokenConfig)
    authorization: AuthorizationConfig = Field(default_factory=AuthorizationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def system_log_path(self) -> Path:
        return Path(self.logging.log_dir).expanduser() / APP_NAME / "system.jsonl"

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.
        Sets secure permissions (0o700 dir, 0o600 file).

        Args:
            config_path: Path where the config JSON file should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        set_secure_permissions(config_path.parent, is_directory=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

        set_secure_permissions(config_path)

    @classmethod
    def load_or_default(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file, or defaults if it does not exist.

        Args:
            config_path: Path to the config JSON file.

        Returns:
            AppConfig instance.

        Raises:
            ValueError: If config file exists but is invalid.
        """
        if not config_path.exists():
            return cls()
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint=f"Fix or delete {config_path} and run '{APP_NAME} init' again.",
        )
