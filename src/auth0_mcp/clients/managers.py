"""Config writers for the supported MCP clients."""

from __future__ import annotations

__all__ = [
    "CLIENT_MANAGERS",
    "ClaudeClientManager",
    "CursorClientManager",
    "VSCodeClientManager",
    "WindsurfClientManager",
    "get_client_manager",
]

from pathlib import Path

from auth0_mcp.clients.base import ClientManager, ClientOptions, get_platform_path
from auth0_mcp.exceptions import ConfigurationError


class ClaudeClientManager(ClientManager):
    display_name = "Claude Desktop"

    def get_config_path(self, options: ClientOptions | None = None) -> Path:
        config_dir = get_platform_path(
            darwin=self._home / "Library" / "Application Support" / "Claude",
            win32="Claude",
            linux=self._home / ".config" / "Claude",
            platform=self._platform,
        )
        return config_dir / "claude_desktop_config.json"


class CursorClientManager(ClientManager):
    display_name = "Cursor"

    def get_config_path(self, options: ClientOptions | None = None) -> Path:
        config_dir = get_platform_path(
            darwin=self._home / ".cursor",
            win32=".cursor",
            linux=self._home / ".cursor",
            platform=self._platform,
        )
        return config_dir / "mcp.json"


class WindsurfClientManager(ClientManager):
    display_name = "Windsurf"

    def get_config_path(self, options: ClientOptions | None = None) -> Path:
        config_dir = get_platform_path(
            darwin=self._home / ".codeium" / "windsurf",
            win32=".codeium/windsurf",
            linux=self._home / ".codeium" / "windsurf",
            platform=self._platform,
        )
        return config_dir / "mcp_config.json"


class VSCodeClientManager(ClientManager):
    """VS Code keeps MCP servers under a top-level "servers" key.

    With options.workspace_folder set, the entry goes to
    <folder>/.vscode/mcp.json instead of the user-level file.
    """

    display_name = "VS Code"
    servers_key = "servers"

    def get_config_path(self, options: ClientOptions | None = None) -> Path:
        if options is not None and options.workspace_folder is not None:
            folder = options.workspace_folder
            if not folder.is_dir():
                raise ConfigurationError(f"Workspace folder does not exist: {folder}")
            return folder / ".vscode" / "mcp.json"

        config_dir = get_platform_path(
            darwin=self._home / "Library" / "Application Support" / "Code" / "User",
            win32="Code/User",
            linux=self._home / ".config" / "Code" / "User",
            platform=self._platform,
        )
        return config_dir / "mcp.json"


CLIENT_MANAGERS: dict[str, type[ClientManager]] = {
    "claude": ClaudeClientManager,
    "cursor": CursorClientManager,
    "windsurf": WindsurfClientManager,
    "vscode": VSCodeClientManager,
}


def get_client_manager(name: str, **kwargs: object) -> ClientManager:
    """Instantiate the writer registered under name.

    Raises:
        ValueError: Unknown client name.
    """
    try:
        manager_cls = CLIENT_MANAGERS[name]
    except KeyError:
        raise ValueError(f"Unknown client: {name}. Supported clients: {', '.join(CLIENT_MANAGERS)}") from None
    return manager_cls(**kwargs)  # type: ignore[arg-type]
