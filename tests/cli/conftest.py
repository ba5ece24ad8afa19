"""CLI fixtures: isolated config location and in-memory keyring."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path: Path, memory_keyring, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point config at an empty temp dir and keep log files out of the home directory."""
    for var in ("AUTH0_DOMAIN", "AUTH0_CLIENT_ID", "AUTH0_CLIENT_SECRET"):
        monkeypatch.delenv(var, raising=False)
    with (
        patch("auth0_mcp.cli.helpers.get_config_path", return_value=tmp_path / "config.json"),
        patch("auth0_mcp.cli.helpers.configure_system_logger_file"),
    ):
        yield
