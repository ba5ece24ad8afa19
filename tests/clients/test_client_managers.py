"""Tests for the MCP client config writers."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from auth0_mcp.clients import ClientOptions, get_client_manager
from auth0_mcp.clients.base import get_platform_path
from auth0_mcp.exceptions import ConfigurationError, UnsupportedPlatformError


@pytest.fixture(autouse=True)
def no_installed_executable():
    """Pin the generated command to the bare executable name."""
    with patch("auth0_mcp.clients.base.shutil.which", return_value=None):
        yield


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class TestGetPlatformPath:
    def test_darwin_and_linux(self, tmp_path: Path) -> None:
        kwargs = {"darwin": tmp_path / "mac", "win32": "Win", "linux": tmp_path / "linux"}

        assert get_platform_path(platform="darwin", **kwargs) == tmp_path / "mac"
        assert get_platform_path(platform="linux", **kwargs) == tmp_path / "linux"

    def test_win32_uses_appdata(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPDATA", str(tmp_path))

        assert get_platform_path(darwin=tmp_path, win32="Claude", linux=tmp_path, platform="win32") == tmp_path / "Claude"

    def test_win32_without_appdata(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APPDATA", raising=False)

        with pytest.raises(ConfigurationError, match="APPDATA"):
            get_platform_path(darwin=tmp_path, win32="Claude", linux=tmp_path, platform="win32")

    def test_unsupported_platform(self, tmp_path: Path) -> None:
        with pytest.raises(UnsupportedPlatformError, match="sunos5"):
            get_platform_path(darwin=tmp_path, win32="x", linux=tmp_path, platform="sunos5")


class TestConfigPaths:
    @pytest.mark.parametrize(
        "client,platform,expected",
        [
            ("claude", "darwin", "Library/Application Support/Claude/claude_desktop_config.json"),
            ("claude", "linux", ".config/Claude/claude_desktop_config.json"),
            ("cursor", "darwin", ".cursor/mcp.json"),
            ("windsurf", "linux", ".codeium/windsurf/mcp_config.json"),
            ("vscode", "darwin", "Library/Application Support/Code/User/mcp.json"),
            ("vscode", "linux", ".config/Code/User/mcp.json"),
        ],
    )
    def test_config_path(self, tmp_path: Path, client: str, platform: str, expected: str) -> None:
        manager = get_client_manager(client, home=tmp_path, platform=platform)

        assert manager.get_config_path() == tmp_path / expected

    def test_vscode_workspace_folder(self, tmp_path: Path) -> None:
        manager = get_client_manager("vscode", home=tmp_path, platform="linux")

        path = manager.get_config_path(ClientOptions(workspace_folder=tmp_path))

        assert path == tmp_path / ".vscode" / "mcp.json"

    def test_vscode_missing_workspace_folder(self, tmp_path: Path) -> None:
        manager = get_client_manager("vscode", home=tmp_path, platform="linux")

        with pytest.raises(ConfigurationError, match="does not exist"):
            manager.get_config_path(ClientOptions(workspace_folder=tmp_path / "missing"))

    def test_unknown_client(self) -> None:
        with pytest.raises(ValueError, match="Supported clients: claude, cursor, windsurf, vscode"):
            get_client_manager("emacs")


class TestConfigure:
    def test_creates_file_with_server_entry(self, tmp_path: Path) -> None:
        """Given no config file, one is created with the auth0 entry."""
        # Arrange
        manager = get_client_manager("claude", home=tmp_path, platform="linux")

        # Act
        path = manager.configure(ClientOptions(tools=["auth0_list_*", "auth0_get_log"], read_only=True))

        # Assert
        assert _read(path) == {
            "mcpServers": {
                "auth0": {
                    "command": "auth0-mcp",
                    "args": ["run", "--tools", "auth0_list_*,auth0_get_log", "--read-only"],
                    "env": {"AUTH0_MCP_DEBUG": "true"},
                }
            }
        }

    def test_preserves_other_servers_and_keys(self, tmp_path: Path) -> None:
        # Arrange
        manager = get_client_manager("cursor", home=tmp_path, platform="linux")
        path = manager.get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text(
            json.dumps({"theme": "dark", "mcpServers": {"github": {"command": "gh-mcp"}, "auth0": {"old": True}}}),
            encoding="utf-8",
        )

        # Act
        manager.configure(ClientOptions())

        # Assert
        config = _read(path)
        assert config["theme"] == "dark"
        assert config["mcpServers"]["github"] == {"command": "gh-mcp"}
        assert config["mcpServers"]["auth0"]["args"] == ["run", "--tools", "*"]

    def test_vscode_uses_servers_key(self, tmp_path: Path) -> None:
        manager = get_client_manager("vscode", home=tmp_path, platform="linux")

        path = manager.configure(ClientOptions())

        assert set(_read(path)) == {"servers"}
        assert "auth0" in _read(path)["servers"]

    def test_uses_installed_executable_path(self, tmp_path: Path) -> None:
        manager = get_client_manager("windsurf", home=tmp_path, platform="linux")

        with patch("auth0_mcp.clients.base.shutil.which", return_value="/opt/bin/auth0-mcp"):
            path = manager.configure(ClientOptions())

        assert _read(path)["mcpServers"]["auth0"]["command"] == "/opt/bin/auth0-mcp"

    def test_unparseable_file_is_not_overwritten(self, tmp_path: Path) -> None:
        # Arrange
        manager = get_client_manager("claude", home=tmp_path, platform="linux")
        path = manager.get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="Fix or remove the file"):
            manager.configure(ClientOptions())

        assert path.read_text(encoding="utf-8") == "{broken"

    def test_non_object_json_is_rejected(self, tmp_path: Path) -> None:
        manager = get_client_manager("claude", home=tmp_path, platform="linux")
        path = manager.get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            manager.configure(ClientOptions())
