"""Shared file utilities for auth0-mcp.

Provides common utilities used by config and the MCP client config writers:
- get_app_dir: OS-appropriate application directory
- set_secure_permissions: Owner-only file/directory permissions
- require_file_exists, load_validated_json: Config loading with clear errors
- read_json_object, write_json_file: Plain JSON documents owned by other apps
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import BaseModel, ValidationError

from auth0_mcp.constants import APP_NAME

# Type variable for Pydantic models
T = TypeVar("T", bound=BaseModel)

__all__ = [
    "get_app_dir",
    "set_secure_permissions",
    "require_file_exists",
    "load_validated_json",
    "read_json_object",
    "write_json_file",
]


def get_app_dir() -> Path:
    """Get the OS-appropriate application directory.

    Uses click.get_app_dir() which returns:
    - macOS: ~/Library/Application Support/auth0-mcp
    - Linux: ~/.config/auth0-mcp (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\auth0-mcp

    Returns:
        Path to the application directory.
    """
    return Path(click.get_app_dir(APP_NAME))


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Set owner-only permissions on file (0o600) or directory (0o700).

    Does nothing on Windows. Silently ignores permission errors
    (some systems don't allow permission changes).
    """
    if sys.platform == "win32":
        return

    try:
        path.chmod(0o700 if is_directory else 0o600)
    except OSError:
        pass  # Permission changes might fail on some systems


def require_file_exists(
    file_path: Path,
    file_type: str = "file",
    init_hint: bool = True,
) -> None:
    """Raise FileNotFoundError with helpful message if file doesn't exist.

    Args:
        file_path: Path to check.
        file_type: Description for error message (e.g., "configuration").
        init_hint: If True, suggest running 'auth0-mcp init'.

    Raises:
        FileNotFoundError: If file doesn't exist.
    """
    if file_path.exists():
        return

    hint = f"\nRun '{APP_NAME} init' to create a {file_type} file." if init_hint else ""
    raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.{hint}")


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
    recovery_hint: str | None = None,
    encoding: str | None = "utf-8",
) -> T:
    """Load JSON file and validate against Pydantic model.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config").
        recovery_hint: Optional hint appended to validation errors.
        encoding: File encoding.

    Returns:
        Validated Pydantic model instance.

    Raises:
        ValueError: If JSON is invalid or validation fails.
    """
    try:
        with open(file_path, "r", encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")

        hint = f"\n\n{recovery_hint}" if recovery_hint else ""
        raise ValueError(
            f"Invalid {file_type} configuration in {file_path}:\n" + "\n".join(errors) + hint
        ) from e


def read_json_object(file_path: Path) -> dict[str, Any]:
    """Read a JSON object from disk.

    A missing or empty file yields an empty dict.

    Raises:
        ValueError: If the file holds invalid JSON or a non-object value.
    """
    if not file_path.exists():
        return {}

    text = file_path.read_text(encoding="utf-8")
    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {file_path}, found {type(data).__name__}")
    return data


def write_json_file(file_path: Path, data: dict[str, Any], *, secure: bool = False) -> None:
    """Write a JSON document, creating parent directories.

    Args:
        file_path: Destination path.
        data: JSON-serializable object.
        secure: Apply owner-only permissions to the file and its directory.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if secure:
        set_secure_permissions(file_path.parent, is_directory=True)

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")

    if secure:
        set_secure_permissions(file_path)
