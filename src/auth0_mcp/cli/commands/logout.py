"""Logout command: revoke the refresh token and clear the credential store."""

from __future__ import annotations

__all__ = ["logout"]

import click

from auth0_mcp.cli.helpers import load_config_or_exit, setup_cli_logging
from auth0_mcp.cli.styling import style_dim, style_error, style_success, style_warning
from auth0_mcp.constants import KEYCHAIN_SERVICE_NAME
from auth0_mcp.security.auth.token_refresh import TokenManager
from auth0_mcp.security.credential_store import CredentialStore, KeychainSlot

SLOT_DESCRIPTIONS: dict[KeychainSlot, str] = {
    KeychainSlot.ACCESS_TOKEN: "access token",
    KeychainSlot.REFRESH_TOKEN: "refresh token",
    KeychainSlot.DOMAIN: "domain information",
    KeychainSlot.TOKEN_EXPIRES_AT: "token expiration",
}


@click.command()
def logout() -> None:
    """Remove Auth0 credentials from this machine.

    The refresh token is revoked at Auth0 first (best effort), then every
    stored item is deleted.
    """
    config = load_config_or_exit()
    setup_cli_logging(config)

    store = CredentialStore()
    click.echo("Clearing authentication data...")

    if not TokenManager(store, config.oauth, config.token).revoke_refresh_token():
        click.echo(style_dim("Could not revoke the refresh token at Auth0; removing it locally."))

    results = store.delete_all()
    removed = [r for r in results if r.success]
    failed = [r for r in results if not r.success and r.error]

    if removed:
        names = ", ".join(SLOT_DESCRIPTIONS[r.slot] for r in removed)
        click.echo(style_success(f"Removed {names} from {store.backend.description}."))
    elif not failed:
        click.echo(style_dim("No Auth0 MCP authentication data was found."))

    if failed:
        click.echo(style_warning("Some credentials could not be removed and may require manual cleanup:"), err=True)
        for result in failed:
            click.echo(style_error(f"{SLOT_DESCRIPTIONS[result.slot]}: {result.error}"), err=True)
        click.echo(
            f"To remove them manually, search your system keychain for '{KEYCHAIN_SERVICE_NAME}'.",
            err=True,
        )
        raise SystemExit(1)
