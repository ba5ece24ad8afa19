"""Access token claim decoding for scope checks.

The authorization gate asks a TokenDecoder for the scopes, expiry and
subject of a bearer token. The default decoder reads the JWT payload
without verifying the signature: tokens come from our own provider and
the Management API performs the real verification on every call. A
verifying decoder (JWKS-backed) can be dropped in through the same
interface.
"""

from __future__ import annotations

__all__ = [
    "TokenClaims",
    "TokenDecodeError",
    "TokenDecoder",
    "UnverifiedClaimsDecoder",
    "extract_scopes",
]

from dataclasses import dataclass
from typing import Any, Protocol

import jwt


class TokenDecodeError(Exception):
    """Token is not a decodable JWT."""


@dataclass(frozen=True)
class TokenClaims:
    """Claims the authorization gate cares about.

    Attributes:
        scopes: Granted scopes (from 'scope' or 'permissions').
        exp: Expiry as epoch seconds, if present.
        sub: Subject, if present.
        aud: Audiences, normalized to a list.
    """

    scopes: frozenset[str]
    exp: int | None = None
    sub: str | None = None
    aud: tuple[str, ...] = ()


class TokenDecoder(Protocol):
    """Decodes a bearer token into TokenClaims."""

    def decode(self, token: str) -> TokenClaims:
        """Raise TokenDecodeError if the token cannot be decoded."""
        ...


def extract_scopes(claims: dict[str, Any]) -> frozenset[str]:
    """Collect scopes from a claims dict.

    Auth0 puts OAuth scopes in a space-delimited 'scope' string and RBAC
    permissions in a 'permissions' list; both count.
    """
    scopes: set[str] = set()

    scope_claim = claims.get("scope")
    if isinstance(scope_claim, str):
        scopes.update(s for s in scope_claim.split() if s)
    elif isinstance(scope_claim, list):
        scopes.update(str(s) for s in scope_claim)

    permissions = claims.get("permissions")
    if isinstance(permissions, list):
        scopes.update(str(p) for p in permissions)

    return frozenset(scopes)


class UnverifiedClaimsDecoder:
    """Decode JWT claims without signature verification."""

    def decode_raw(self, token: str) -> dict[str, Any]:
        try:
            claims: dict[str, Any] = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise TokenDecodeError(f"Failed to decode token: {e}") from e
        return claims

    def decode(self, token: str) -> TokenClaims:
        claims = self.decode_raw(token)

        aud = claims.get("aud")
        if isinstance(aud, str):
            audiences: tuple[str, ...] = (aud,)
        elif isinstance(aud, list):
            audiences = tuple(str(a) for a in aud)
        else:
            audiences = ()

        exp = claims.get("exp")
        sub = claims.get("sub")
        return TokenClaims(
            scopes=extract_scopes(claims),
            exp=int(exp) if isinstance(exp, (int, float)) else None,
            sub=str(sub) if sub is not None else None,
            aud=audiences,
        )
