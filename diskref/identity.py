"""Canonical path and alias discovery for block devices."""

from __future__ import annotations

import os
import posixpath
from typing import Dict, List, Optional

from . import settings
from .environment import DeviceEnvironment
from .errors import MetadataUnavailableError, ResolutionError
from .logging_utils import log_event

__all__ = [
    "DEVLINKS_PROPERTY",
    "resolve_canonical",
    "read_udev_properties",
    "list_aliases",
]

DEVLINKS_PROPERTY = "DEVLINKS"
_DEV_ROOT = "/dev"


def resolve_canonical(path: str, env: DeviceEnvironment | None = None) -> str:
    """Return the symlink-free absolute path of *path*.

    Raises :class:`ResolutionError` when the path does not exist or cannot be
    resolved.
    """

    env = env or DeviceEnvironment()
    if not env.path_exists(path):
        raise ResolutionError(path, "path does not exist")
    try:
        resolved = env.realpath(path)
    except OSError as exc:
        raise ResolutionError(path, exc.strerror or str(exc)) from exc
    return posixpath.normpath(resolved)


def _parse_properties(output: str) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or not key:
            continue
        properties[key] = value
    return properties


def read_udev_properties(
    path: str, env: DeviceEnvironment | None = None
) -> Dict[str, str]:
    """Return the udev property database entry for *path*."""

    env = env or DeviceEnvironment()
    result = env.run(["udevadm", "info", "--query=property", f"--name={path}"])
    if result.returncode != 0:
        raise MetadataUnavailableError(
            path, (result.stderr or "").strip() or f"udevadm exited with {result.returncode}"
        )
    properties = _parse_properties(result.stdout)
    if not properties:
        raise MetadataUnavailableError(path, "empty property list")
    return properties


def _absolute_link(link: str) -> str:
    if link.startswith("/"):
        return posixpath.normpath(link)
    return posixpath.normpath(posixpath.join(_DEV_ROOT, link))


def list_aliases(
    path: str,
    directory: Optional[str] = settings.DEFAULT_ALIAS_DIR,
    env: DeviceEnvironment | None = None,
) -> List[str]:
    """Return the alias names udev publishes for *path*.

    Only links located directly in *directory* are kept and their last path
    segment is returned. With ``directory=None`` every link is returned as a
    full path. Devices without udev metadata yield an empty list.
    """

    env = env or DeviceEnvironment()
    try:
        properties = read_udev_properties(path, env)
    except MetadataUnavailableError as exc:
        log_event("diskref.identity.metadata_unavailable", device=path, error=str(exc))
        return []
    devlinks = properties.get(DEVLINKS_PROPERTY, "")
    links = [_absolute_link(item) for item in devlinks.split() if item]
    if directory is None:
        return links
    wanted = posixpath.normpath(directory)
    aliases = [
        os.path.basename(link) for link in links if posixpath.dirname(link) == wanted
    ]
    log_event(
        "diskref.identity.aliases",
        device=path,
        directory=wanted,
        links=links,
        aliases=aliases,
    )
    return aliases
