"""Shared fixtures: an in-memory keyring, credential stores and JWT builders."""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

import jwt
import keyring
import pytest
from keyring.backend import KeyringBackend as BaseKeyring
from keyring.errors import PasswordDeleteError

from auth0_mcp.config import OAuthConfig
from auth0_mcp.security.credential_store import CredentialStore, KeychainSlot, KeyringBackend


class InMemoryKeyring(BaseKeyring):
    """Keyring backend that keeps secrets in a dict."""

    priority = 1  # type: ignore[assignment]

    def __init__(self) -> None:
        super().__init__()
        self.secrets: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.secrets.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.secrets[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.secrets[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None


@pytest.fixture
def memory_keyring() -> Iterator[InMemoryKeyring]:
    """Install an in-memory keyring for the duration of a test."""
    previous = keyring.get_keyring()
    backend = InMemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def store(memory_keyring: InMemoryKeyring) -> CredentialStore:
    """Credential store backed by the in-memory keyring."""
    return CredentialStore(KeyringBackend())


@pytest.fixture
def oauth_config() -> OAuthConfig:
    return OAuthConfig(domain="login.example.com", client_id="test-client-id", audience=None)


def make_token(domain: str = "dev-tenant.us.auth0.com", **claims: Any) -> str:
    """Build an HS256 JWT whose audience is the tenant's Management API."""
    payload: dict[str, Any] = {
        "sub": "auth0|12345",
        "aud": [f"https://{domain}/api/v2/", f"https://{domain}/userinfo"],
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, "test-secret-key-with-enough-length!", algorithm="HS256")


@pytest.fixture
def access_token() -> str:
    return make_token(scope="read:clients read:logs")


def now_ms() -> int:
    return int(time.time() * 1000)


def seed_session(
    store: CredentialStore,
    *,
    access_token: str = "stored-access-token",
    domain: str = "dev-tenant.us.auth0.com",
    refresh_token: str | None = "stored-refresh-token",
    expires_at: int | None = None,
) -> None:
    """Write a credential record slot by slot."""
    store.set(KeychainSlot.ACCESS_TOKEN, access_token)
    store.set(KeychainSlot.DOMAIN, domain)
    if refresh_token is not None:
        store.set(KeychainSlot.REFRESH_TOKEN, refresh_token)
    if expires_at is not None:
        store.set_expires_at(expires_at)


@pytest.fixture
def token_factory() -> Any:
    """Factory building tenant access tokens; see make_token()."""
    return make_token


@pytest.fixture
def seeded_store(store: CredentialStore) -> Any:
    """Factory seeding the store with a session; see seed_session()."""

    def seed(**kwargs: Any) -> CredentialStore:
        seed_session(store, **kwargs)
        return store

    return seed
