"""Masking of sensitive fields in Management API responses.

Responses are relayed to MCP clients (and through them to an LLM and its
logs), so values whose key looks like a secret are replaced before the
response leaves the server. The structure of the response is preserved.

Matching is a case-insensitive substring test on the key: "client_secret",
"signing_keys" and "refresh_token_rotation" are all masked. Falsy values
(empty string, None, False, 0) are left untouched.

Usage:
    from auth0_mcp.security.masking import mask_sensitive_fields

    safe = mask_sensitive_fields(api_response)
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_REPLACEMENT",
    "DEFAULT_SENSITIVE_FIELDS",
    "mask_sensitive_fields",
]

from collections.abc import Iterable
from typing import Any

from auth0_mcp.telemetry.system.system_logger import get_system_logger

DEFAULT_SENSITIVE_FIELDS: tuple[str, ...] = (
    "client_secret",
    "signing_keys",
    "encryption_key",
    "client_assertion",
    "signing_key",
    "secret",
    "private_key",
    "password",
    "token",
    "refresh_token",
    "access_token",
)

DEFAULT_REPLACEMENT = "[REDACTED]"


def _is_sensitive(key: str, fields: tuple[str, ...]) -> bool:
    lowered = key.lower()
    return any(field in lowered for field in fields)


def _resolve_fields(extra_fields: Iterable[str] | None) -> tuple[str, ...]:
    fields = DEFAULT_SENSITIVE_FIELDS + tuple(extra_fields or ())
    return tuple(f.lower() for f in fields)


def _mask(data: Any, fields: tuple[str, ...], replacement: str, masked_keys: list[str]) -> Any:
    if isinstance(data, list):
        return [_mask(item, fields, replacement, masked_keys) for item in data]

    if not isinstance(data, dict):
        return data

    masked: dict[str, Any] = {}
    for key, value in data.items():
        if _is_sensitive(str(key), fields) and value:
            masked[key] = replacement
            masked_keys.append(str(key))
        elif isinstance(value, (dict, list)):
            masked[key] = _mask(value, fields, replacement, masked_keys)
        else:
            masked[key] = value
    return masked


def mask_sensitive_fields(
    data: Any,
    *,
    extra_fields: Iterable[str] | None = None,
    replacement: str = DEFAULT_REPLACEMENT,
) -> Any:
    """Return a copy of data with sensitive values replaced.

    Args:
        data: Dict, list, or primitive (primitives are returned unchanged).
        extra_fields: Additional key fragments to mask, merged with the defaults.
        replacement: Replacement text.

    Returns:
        New structure; the input is not modified.
    """
    masked_keys: list[str] = []
    result = _mask(data, _resolve_fields(extra_fields), replacement, masked_keys)

    if masked_keys:
        get_system_logger().debug(
            {
                "event": "response_masked",
                "fields": sorted(set(masked_keys)),
                "message": f"Masked {len(masked_keys)} sensitive field(s) in response",
            }
        )
    return result
