"""Run command: serve the MCP tool catalog over stdio."""

from __future__ import annotations

__all__ = ["run"]

import click

from auth0_mcp.cli.helpers import load_config_or_exit, setup_cli_logging, split_patterns
from auth0_mcp.cli.styling import style_error
from auth0_mcp.constants import APP_NAME
from auth0_mcp.exceptions import AuthenticationError
from auth0_mcp.security.auth.token_refresh import TokenManager
from auth0_mcp.security.credential_store import CredentialStore
from auth0_mcp.server import create_server_from_config
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.tools.catalog import validate_tool_patterns
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name


@click.command()
@click.option("--tools", default="*", show_default=True, help="Comma-separated tool name patterns to serve")
@click.option("--read-only", is_flag=True, help="Only serve tools that do not modify the tenant")
def run(tools: str, read_only: bool) -> None:
    """Start the MCP server (STDIO).

    Normally started by the MCP client from the entry 'init' wrote.
    All output goes to stderr; stdout carries the MCP protocol.
    """
    config = load_config_or_exit()
    setup_cli_logging(config)
    logger = get_system_logger()

    tool_patterns = split_patterns(tools) or ["*"]
    try:
        validate_tool_patterns(tool_patterns)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--tools") from e

    store = CredentialStore()
    credentials = TokenManager(store, config.oauth, config.token).get_valid_credentials()
    if credentials is None:
        click.echo(style_error("No valid Auth0 credentials found."), err=True)
        click.echo(f"Run '{APP_NAME} init' to authenticate.", err=True)
        raise SystemExit(AuthenticationError.exit_code)

    logger.info(
        {
            "event": "server_starting",
            "tenant": mask_tenant_name(credentials.domain),
            "read_only": read_only,
            "tools": tool_patterns,
            "message": f"Starting server for tenant {mask_tenant_name(credentials.domain)}",
        }
    )

    server = create_server_from_config(config, tool_patterns=tool_patterns, read_only=read_only, store=store)

    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info({"event": "server_stopped", "message": "Server stopped"})
