"""Helpers for keeping secrets and tenant names out of log output."""

from __future__ import annotations

__all__ = [
    "mask_tenant_name",
    "redact_token",
]

# Characters of a token shown in diagnostic output
TOKEN_PREVIEW_LENGTH = 8


def redact_token(token: str | None) -> str:
    """Return a short, non-reversible description of a token for logs.

    Only the first few characters and the overall length are shown, so two
    log lines can be correlated without leaking a usable credential.

    Args:
        token: Token value (may be None).

    Returns:
        str: e.g. "eyJhbGci...(len=812)" or "<none>".
    """
    if not token:
        return "<none>"
    if len(token) <= TOKEN_PREVIEW_LENGTH * 2:
        return f"***(len={len(token)})"
    return f"{token[:TOKEN_PREVIEW_LENGTH]}...(len={len(token)})"


def mask_tenant_name(tenant: str | None) -> str:
    """Mask a tenant host for display.

    Keeps the part before the first dash, three characters after it, and the
    top-level domain. Hosts without a dash or a dot are returned unchanged.

    Example:
        >>> mask_tenant_name("dev-sfhq3wa0lf1.us.auth0.com")
        'dev-sfh***com'
    """
    if not tenant:
        return "unknown"

    dash = tenant.find("-")
    last_dot = tenant.rfind(".")
    if dash == -1 or last_dot == -1:
        return tenant

    return f"{tenant[:dash]}-{tenant[dash + 1:dash + 4]}***{tenant[last_dot + 1:]}"
