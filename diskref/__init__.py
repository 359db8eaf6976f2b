"""Stable block device references and a path-addressed configuration store."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as pkg_version

__all__ = [
    "aliases",
    "block_device",
    "cli",
    "config_path",
    "config_store",
    "environment",
    "errors",
    "identity",
    "settings",
]


def _discover_version() -> str:
    try:
        return pkg_version("diskref")
    except PackageNotFoundError:
        return "unknown"


__version__ = _discover_version()
