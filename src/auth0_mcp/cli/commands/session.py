"""Session command: show the stored authentication session."""

from __future__ import annotations

__all__ = ["session"]

import time
from datetime import datetime

import click

from auth0_mcp.cli.helpers import load_config_or_exit
from auth0_mcp.cli.styling import style_error, style_header, style_label, style_success, style_warning
from auth0_mcp.constants import APP_NAME
from auth0_mcp.security.auth.token_refresh import TokenManager
from auth0_mcp.security.credential_store import CredentialStore
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name


@click.command()
def session() -> None:
    """Show the active session. Never prints token values."""
    config = load_config_or_exit()
    store = CredentialStore()

    credentials = store.load_credentials()
    if credentials is None:
        click.echo(style_warning("No active authentication session found."))
        click.echo(f"Run '{APP_NAME} init' to authenticate.")
        return

    manager = TokenManager(store, config.oauth, config.token)

    click.echo(style_header("Session"))
    click.echo(style_success("Active authentication session"))
    click.echo(f"{style_label('Domain')} {mask_tenant_name(credentials.domain)}")

    expires_at = credentials.expires_at
    if expires_at is None:
        click.echo(f"{style_label('Token status')} {style_error('Unknown expiry (treated as expired)')}")
    else:
        when = datetime.fromtimestamp(expires_at / 1000).strftime("%Y-%m-%d %H:%M:%S")
        remaining_ms = expires_at - int(time.time() * 1000)
        if remaining_ms > 0:
            hours = remaining_ms // (1000 * 60 * 60)
            click.echo(f"{style_label('Token expires')} in {hours} hours ({when})")
        else:
            click.echo(f"{style_label('Token status')} {style_error('Expired')} on {when}")
        if remaining_ms > 0 and manager.is_token_expired():
            click.echo(style_warning("Token is inside the expiry buffer and will be refreshed on next use."))

    refresh = "present" if credentials.refresh_token else "absent"
    click.echo(f"{style_label('Refresh token')} {refresh}")
    click.echo(f"{style_label('Storage')} {store.backend.description}")
    click.echo()
    click.echo(f"To use different credentials, run '{APP_NAME} logout'.")
