"""
Shared utility functions for the keybase.

Contains path helpers and common utilities used across packages.
"""

import os
from pathlib import Path

# Secure file permissions (Unix only)
SECURE_FILE_MODE = 0o600  # Owner read/write only


def get_app_dir() -> Path:
    """Get the keybase home directory ($KEYBASE_HOME or ~/.keybase)."""
    home = os.environ.get("KEYBASE_HOME")
    app_dir = Path(home) if home else Path.home() / ".keybase"
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_keys_dir(app_dir: Path = None) -> Path:
    """Get the key record directory."""
    return (app_dir or get_app_dir()) / "keys"


def get_settings_path(app_dir: Path = None) -> Path:
    """Get path to settings file."""
    return (app_dir or get_app_dir()) / "settings.json"


def get_logs_dir(app_dir: Path = None) -> Path:
    """Get the logs directory."""
    logs_dir = (app_dir or get_app_dir()) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def set_secure_permissions(filepath: Path) -> None:
    """
    Set restrictive file permissions on Unix systems.

    Sets file to mode 0600 (owner read/write only) to protect key records.
    No-op on Windows (NTFS uses ACLs, not Unix permissions).
    """
    if os.name == 'posix':
        try:
            os.chmod(filepath, SECURE_FILE_MODE)
        except OSError:
            # Best effort - don't fail the write if chmod fails
            pass


def strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return value[2:]
    return value


def unhex(value: str) -> bytes:
    """Decode hex, accepting an optional 0x prefix. Raises ValueError."""
    return bytes.fromhex(strip_hex_prefix(value))
