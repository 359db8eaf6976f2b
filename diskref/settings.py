"""Environment-driven settings for diskref."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CONFIG_FILE = Path("/etc/diskref/config.json")
DEFAULT_ALIAS_DIR = "/dev/disk/by-id"
DEFAULT_SYSFS_ROOT = Path("/sys")


def _env_value(name: str) -> str | None:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def config_file_path() -> Path:
    """Return the configuration database file.

    ``DISKREF_CONFIG_FILE`` overrides the system-wide default.
    """

    value = _env_value("DISKREF_CONFIG_FILE")
    return Path(value) if value else DEFAULT_CONFIG_FILE


def alias_directory() -> str:
    """Return the directory whose symlinks are considered stable aliases."""

    value = _env_value("DISKREF_ALIAS_DIR")
    if value is None:
        return DEFAULT_ALIAS_DIR
    return value.rstrip("/") or DEFAULT_ALIAS_DIR


def sysfs_root() -> Path:
    value = _env_value("DISKREF_SYSFS_ROOT")
    return Path(value) if value else DEFAULT_SYSFS_ROOT
