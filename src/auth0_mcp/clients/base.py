"""Base class for MCP client configuration writers.

A writer merges an `auth0` server entry into a client's JSON config file.
Other server entries and unrelated keys are preserved.
"""

from __future__ import annotations

__all__ = [
    "ClientManager",
    "ClientOptions",
    "get_platform_path",
]

import os
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from auth0_mcp.constants import APP_NAME, DEBUG_ENV_VAR, MCP_SERVER_NAME
from auth0_mcp.exceptions import ConfigurationError, UnsupportedPlatformError
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.utils.file_helpers import read_json_object, write_json_file


class ClientOptions(BaseModel):
    """What the generated `run` invocation should serve.

    Attributes:
        tools: Tool name patterns passed to `run --tools`.
        read_only: Pass `--read-only`.
        workspace_folder: VS Code only; write a workspace config instead of
            the user-level one.
    """

    model_config = ConfigDict(frozen=True)

    tools: list[str] = Field(default_factory=lambda: ["*"])
    read_only: bool = False
    workspace_folder: Path | None = None


def get_platform_path(
    *,
    darwin: Path,
    win32: str,
    linux: Path,
    platform: str | None = None,
) -> Path:
    """Pick the config directory for the current operating system.

    Args:
        darwin: macOS directory.
        win32: Windows directory relative to %APPDATA%.
        linux: Linux directory.
        platform: Override for sys.platform.

    Raises:
        ConfigurationError: APPDATA is not set on Windows.
        UnsupportedPlatformError: Any other operating system.
    """
    platform = platform or sys.platform
    if platform == "darwin":
        return darwin
    if platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigurationError("APPDATA environment variable not set")
        return Path(appdata) / win32
    if platform.startswith("linux"):
        return linux
    raise UnsupportedPlatformError(f"Unsupported operating system: {platform}")


class ClientManager(ABC):
    """Writes the auth0 server entry into one MCP client's config file."""

    display_name: str = ""
    servers_key: str = "mcpServers"

    def __init__(self, *, home: Path | None = None, platform: str | None = None) -> None:
        self._home = home or Path.home()
        self._platform = platform
        self._logger = get_system_logger()

    @abstractmethod
    def get_config_path(self, options: ClientOptions | None = None) -> Path:
        """Absolute path of the client's config file."""

    def create_server_config(self, options: ClientOptions) -> dict[str, Any]:
        """Build the server entry that launches `auth0-mcp run`."""
        args = ["run", "--tools", ",".join(options.tools)]
        if options.read_only:
            args.append("--read-only")

        return {
            "command": shutil.which(APP_NAME) or APP_NAME,
            "args": args,
            "env": {DEBUG_ENV_VAR: "true"},
        }

    def configure(self, options: ClientOptions) -> Path:
        """Merge the server entry into the config file.

        Returns:
            Path of the updated config file.

        Raises:
            UnsupportedPlatformError: No config location for this OS.
            ConfigurationError: Existing file is not a JSON object, or the
                file cannot be written.
        """
        config_path = self.get_config_path(options)

        try:
            config = read_json_object(config_path)
        except (OSError, ValueError) as e:
            # Refuse to overwrite a file we cannot parse
            raise ConfigurationError(
                f"Could not read {self.display_name} config at {config_path}: {e}\n"
                "Fix or remove the file and run init again."
            ) from e

        servers = config.get(self.servers_key)
        if not isinstance(servers, dict):
            servers = {}
        servers[MCP_SERVER_NAME] = self.create_server_config(options)
        config[self.servers_key] = servers

        try:
            write_json_file(config_path, config)
        except OSError as e:
            raise ConfigurationError(f"Failed to write {config_path}: {e}") from e

        self._logger.info(
            {
                "event": "client_configured",
                "client": self.display_name,
                "path": str(config_path),
                "message": f"Updated {self.display_name} config file at: {config_path}",
            }
        )
        return config_path
