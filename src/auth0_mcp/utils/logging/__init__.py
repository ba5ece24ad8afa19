"""Logging utilities (formatters and redaction helpers)."""

from auth0_mcp.utils.logging.iso_formatter import ISO8601Formatter
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name, redact_token

__all__ = [
    "ISO8601Formatter",
    "mask_tenant_name",
    "redact_token",
]
