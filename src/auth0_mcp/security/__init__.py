"""Credential storage, OAuth flows, and request authorization.

Submodules:
- credential_store: keychain-backed slots (encrypted-file fallback)
- auth/: device flow, client credentials, refresh and revocation
- authorization: per-request gate consulted before tool dispatch
- masking: redaction of secrets in API responses

Note: Exceptions are defined in auth0_mcp.exceptions
"""
