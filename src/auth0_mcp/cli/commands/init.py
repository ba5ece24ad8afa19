"""Init command: authenticate, then configure an MCP client.

Two ways to obtain credentials:
    device              - Browser-based device authorization (default)
    client-credentials  - Machine-to-machine application secret (headless)

A failed credential step aborts before any client config is written.
"""

from __future__ import annotations

__all__ = ["init"]

from pathlib import Path

import click
from pydantic import SecretStr, ValidationError

from auth0_mcp.cli.helpers import load_config_or_exit, setup_cli_logging, split_patterns
from auth0_mcp.cli.styling import style_dim, style_error, style_success
from auth0_mcp.clients import CLIENT_MANAGERS, ClientOptions, get_client_manager
from auth0_mcp.config import AppConfig
from auth0_mcp.constants import APP_NAME, OFFLINE_ACCESS_SCOPE
from auth0_mcp.exceptions import (
    Auth0McpError,
    DeviceFlowDeniedError,
    DeviceFlowExpiredError,
)
from auth0_mcp.security.auth.client_credentials import (
    ClientCredentialsConfig,
    request_client_credentials_authorization,
)
from auth0_mcp.security.auth.device_flow import request_authorization
from auth0_mcp.security.credential_store import CredentialStore, Credentials
from auth0_mcp.tools.catalog import validate_tool_patterns
from auth0_mcp.utils.browser import is_valid_url, open_browser
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name
from auth0_mcp.utils.scopes import resolve_scopes


def _run_device_flow(config: AppConfig, store: CredentialStore, scopes: list[str], no_browser: bool) -> Credentials:
    """Run the device flow with terminal prompts."""

    def display_callback(user_code: str, verification_uri: str, verification_uri_complete: str | None) -> None:
        auth_url = verification_uri_complete or verification_uri

        click.echo(click.style("Authentication Required", fg="cyan", bold=True))
        click.echo()
        click.echo(f"  Your code: {click.style(user_code, fg='green', bold=True)}")
        click.echo()

        if no_browser or not is_valid_url(auth_url):
            click.echo("  Open this URL in your browser:")
            click.echo(f"  {click.style(auth_url, fg='blue', underline=True)}")
        elif not click.confirm("  Open the browser to log in?", default=True):
            click.echo("  Open this URL in your browser:")
            click.echo(f"  {click.style(auth_url, fg='blue', underline=True)}")
        elif not open_browser(auth_url):
            click.echo("  Could not open browser automatically. Open this URL manually:")
            click.echo(f"  {click.style(auth_url, fg='blue', underline=True)}")

        click.echo()
        click.echo("Waiting for authentication", nl=False)

    def poll_callback() -> None:
        click.echo(".", nl=False)

    try:
        credentials = request_authorization(
            config.oauth,
            store,
            display_callback,
            scopes=scopes,
            flow_config=config.device_flow,
            poll_callback=poll_callback,
        )
    except DeviceFlowExpiredError:
        click.echo()
        raise click.ClickException(f"Authentication timed out. Please run '{APP_NAME} init' again.")
    except DeviceFlowDeniedError:
        click.echo()
        raise click.ClickException("Authentication was denied.")

    click.echo()
    return credentials


@click.command()
@click.option(
    "--client",
    type=click.Choice(sorted(CLIENT_MANAGERS)),
    default="claude",
    show_default=True,
    help="MCP client to configure",
)
@click.option("--scopes", help="Comma-separated scopes or patterns (e.g. 'read:*,create:clients')")
@click.option("--tools", default="*", show_default=True, help="Comma-separated tool name patterns to enable")
@click.option("--read-only", is_flag=True, help="Only enable tools that do not modify the tenant")
@click.option(
    "--auth-type",
    type=click.Choice(["device", "client-credentials"]),
    default="device",
    show_default=True,
    help="How to obtain credentials",
)
@click.option("--domain", envvar="AUTH0_DOMAIN", help="Tenant domain (client-credentials)")
@click.option("--client-id", envvar="AUTH0_CLIENT_ID", help="Application client ID (client-credentials)")
@click.option(
    "--client-secret",
    envvar="AUTH0_CLIENT_SECRET",
    help="Application client secret (client-credentials; prefer the environment variable)",
)
@click.option("--audience", help="API audience (client-credentials, defaults to the Management API)")
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="VS Code only: write the workspace config in this folder",
)
@click.option("--no-browser", is_flag=True, help="Don't open the browser automatically")
def init(
    client: str,
    scopes: str | None,
    tools: str,
    read_only: bool,
    auth_type: str,
    domain: str | None,
    client_id: str | None,
    client_secret: str | None,
    audience: str | None,
    workspace: Path | None,
    no_browser: bool,
) -> None:
    """Authenticate with Auth0 and configure an MCP client.

    Credentials are stored in the OS keychain. The selected client's config
    file gets an "auth0" server entry that launches 'auth0-mcp run'.

    Examples:
        auth0-mcp init --scopes 'read:*'
        auth0-mcp init --client cursor --tools 'auth0_list_*' --read-only
        AUTH0_CLIENT_SECRET=... auth0-mcp init --auth-type client-credentials \\
            --domain my-tenant.us.auth0.com --client-id abc123
    """
    config = load_config_or_exit()
    setup_cli_logging(config)

    tool_patterns = split_patterns(tools) or ["*"]
    try:
        validate_tool_patterns(tool_patterns)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--tools") from e

    store = CredentialStore()

    try:
        if auth_type == "client-credentials":
            if not (domain and client_id and client_secret):
                raise click.UsageError(
                    "--domain, --client-id and --client-secret are required for client-credentials"
                )
            cc_config = ClientCredentialsConfig(
                domain=domain,
                client_id=client_id,
                client_secret=SecretStr(client_secret),
                audience=audience,
            )
            credentials = request_client_credentials_authorization(cc_config, store)
        else:
            requested = resolve_scopes(split_patterns(scopes))
            credentials = _run_device_flow(config, store, [OFFLINE_ACCESS_SCOPE, *requested], no_browser)

        click.echo(style_success(f"Authenticated to {mask_tenant_name(credentials.domain)}"))

        manager = get_client_manager(client)
        config_path = manager.configure(
            ClientOptions(tools=tool_patterns, read_only=read_only, workspace_folder=workspace)
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid client-credentials settings: {e}") from e
    except Auth0McpError as e:
        click.echo(style_error(str(e)), err=True)
        raise SystemExit(e.exit_code) from e

    click.echo(style_success(f"Auth0 MCP server configured in {manager.display_name}."))
    click.echo(style_dim(f"  Config file: {config_path}"))
    click.echo(f"Restart {manager.display_name} to apply changes.")
