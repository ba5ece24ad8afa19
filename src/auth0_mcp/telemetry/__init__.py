"""Telemetry for auth0-mcp (operational logging only)."""
