"""Main CLI entry point for auth0-mcp.

Commands:
    init     - Authenticate and configure an MCP client
    run      - Start the MCP server (STDIO)
    logout   - Revoke and remove stored credentials
    session  - Show the stored session

Subcommand help:
    auth0-mcp COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys

import click

from auth0_mcp import __version__

from .commands.init import init
from .commands.logout import logout
from .commands.run import run
from .commands.session import session


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  auth0-mcp init                          Log in via browser, configure Claude Desktop
  auth0-mcp init --client cursor \\
    --scopes 'read:*' --read-only         Read-only setup for Cursor
  auth0-mcp session                       Show the stored session
  auth0-mcp logout                        Remove credentials

Headless Setup (machine-to-machine application):
  AUTH0_CLIENT_SECRET=... auth0-mcp init --auth-type client-credentials \\
    --domain my-tenant.us.auth0.com --client-id <client-id>
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """auth0-mcp: MCP server for the Auth0 Management API."""
    if version:
        click.echo(f"auth0-mcp {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(init)
cli.add_command(logout)
cli.add_command(run)
cli.add_command(session)


def main() -> None:
    """CLI entry point."""
    cli()
