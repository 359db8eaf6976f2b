"""Block device handle exposing a stable identity and geometry."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

from . import settings
from .aliases import select_best
from .environment import DeviceEnvironment
from .errors import DeviceNotFoundError, MalformedRecordError, ResolutionError
from .identity import list_aliases, resolve_canonical
from .logging_utils import log_event

__all__ = ["BlockDevice", "is_device_file_by_id", "SYSFS_SIZE_UNIT"]

_DEV_PREFIX = "/dev/"
_DEVICE_NUMBER = re.compile(r"^\s*(\d+):(\d+)\s*$")

# ``/sys/class/block/<name>/size`` always counts 512-byte units, whatever
# the logical block size of the device.
SYSFS_SIZE_UNIT = 512


def is_device_file_by_id(path: str, directory: str | None = None) -> bool:
    """Return ``True`` when *path* lives in the by-id alias directory."""

    directory = (directory or settings.alias_directory()).rstrip("/")
    return path.startswith(directory + "/") and len(path) > len(directory) + 1


class BlockDevice:
    """A block device addressed by a device file path.

    A by-id path is canonicalized as soon as the handle is created; other
    paths are kept as supplied until :meth:`get_canonical_device_file` is
    called. Lookups are cached per handle and never retried automatically.
    """

    def __init__(
        self,
        device_file: str,
        *,
        env: DeviceEnvironment | None = None,
        alias_dir: str | None = None,
    ) -> None:
        self.env = env or DeviceEnvironment()
        self.alias_dir = (alias_dir or settings.alias_directory()).rstrip("/")
        self._canonical: Optional[str] = None
        self._by_id: Optional[str] = None
        self._by_id_found = False
        self.size: Optional[int] = None
        self.block_size: Optional[int] = None
        self.sector_size: Optional[int] = None

        if is_device_file_by_id(device_file, self.alias_dir):
            try:
                self._canonical = resolve_canonical(device_file, self.env)
            except ResolutionError as exc:
                log_event(
                    "diskref.device.by_id_unresolved",
                    device=device_file,
                    error=str(exc),
                )
            else:
                device_file = self._canonical
        self._device_file = device_file

    def __repr__(self) -> str:
        return f"BlockDevice({self._device_file!r})"

    def exists(self) -> bool:
        return self.env.is_block_special(self._device_file)

    def assert_exists(self) -> None:
        if not self.exists():
            raise DeviceNotFoundError(self._device_file)

    def get_device_file(self) -> str:
        return self._device_file

    def get_canonical_device_file(self) -> str:
        """Return the resolved device node, computed once per handle."""

        if self._canonical is None:
            self._canonical = resolve_canonical(self._device_file, self.env)
        return self._canonical

    def get_device_file_by_id(self) -> Optional[str]:
        """Return the preferred by-id alias, or ``None`` when there is none.

        A device without aliases caches its plain device file so udev is
        consulted only once per handle.
        """

        if self._by_id is None:
            aliases = list_aliases(self._device_file, self.alias_dir, self.env)
            best = select_best(aliases, self.alias_dir)
            self._by_id_found = best is not None
            self._by_id = best if best is not None else self._device_file
            log_event(
                "diskref.device.by_id_resolved",
                device=self._device_file,
                candidates=sorted(aliases),
                selected=best,
            )
        return self._by_id if self._by_id_found else None

    def has_device_file_by_id(self) -> bool:
        return self.get_device_file_by_id() is not None

    def get_preferred_device_file(self) -> str:
        """Return the by-id alias when available, otherwise the canonical path."""

        by_id = self.get_device_file_by_id()
        if by_id is not None:
            return by_id
        return self.get_canonical_device_file()

    def invalidate(self) -> None:
        """Forget the cached alias and geometry. The canonical path stays."""

        self._by_id = None
        self._by_id_found = False
        self.size = None
        self.block_size = None
        self.sector_size = None

    def get_device_name(self, canonical: bool = False) -> str:
        """Return the device file with the literal ``/dev/`` prefix removed."""

        path = self.get_canonical_device_file() if canonical else self._device_file
        if path.startswith(_DEV_PREFIX):
            return path[len(_DEV_PREFIX) :]
        return path

    def _sysfs_name(self) -> Optional[str]:
        """Return the kernel name of the canonical node, or ``None`` outside ``/dev``.

        Nested nodes such as ``/dev/cciss/c0d0`` appear in sysfs as ``cciss!c0d0``.
        """

        path = self.get_canonical_device_file()
        if not path.startswith(_DEV_PREFIX):
            return None
        name = path[len(_DEV_PREFIX) :]
        if not name:
            return None
        return name.replace("/", "!")

    def get_device_number(self) -> Optional[Tuple[int, int]]:
        """Return ``(major, minor)`` from sysfs, or ``None`` without a record."""

        name = self._sysfs_name()
        if name is None:
            return None
        record = self.env.block_record(name, "dev")
        content = self.env.read_text(record)
        if content is None:
            return None
        match = _DEVICE_NUMBER.match(content)
        if match is None:
            raise MalformedRecordError(str(record), content)
        return int(match.group(1)), int(match.group(2))

    def get_major(self) -> Optional[int]:
        number = self.get_device_number()
        return number[0] if number is not None else None

    def get_minor(self) -> Optional[int]:
        number = self.get_device_number()
        return number[1] if number is not None else None

    def get_description(self) -> str:
        number = self.get_device_number()
        label = f"{number[0]}:{number[1]}" if number is not None else "?"
        return f"Block device {self.get_device_name()} [{label}]"

    def get_size(self) -> Optional[int]:
        return self.size

    def get_block_size(self) -> Optional[int]:
        return self.block_size

    def get_sector_size(self) -> Optional[int]:
        return self.sector_size

    def _read_int(self, *parts: str) -> Optional[int]:
        name = self._sysfs_name()
        if name is None:
            return None
        record = self.env.block_record(name, *parts)
        content = self.env.read_text(record)
        if content is None or not content.strip():
            return None
        try:
            return int(content.strip())
        except ValueError:
            raise MalformedRecordError(str(record), content) from None

    def load_geometry(self) -> "BlockDevice":
        """Populate size, block size and sector size from sysfs.

        All records are read before any attribute changes, so a malformed
        record leaves the previous geometry in place.
        """

        sectors = self._read_int("size")
        block_size = self._read_int("queue", "physical_block_size")
        sector_size = self._read_int("queue", "logical_block_size")
        self.size = sectors * SYSFS_SIZE_UNIT if sectors is not None else None
        self.block_size = block_size
        self.sector_size = sector_size
        log_event(
            "diskref.device.geometry",
            device=self._device_file,
            size=self.size,
            block_size=self.block_size,
            sector_size=self.sector_size,
        )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Return the public identity as a JSON-ready mapping."""

        number = self.get_device_number()
        return {
            "devicefile": self._device_file,
            "canonicaldevicefile": self.get_canonical_device_file(),
            "devicefilebyid": self.get_device_file_by_id(),
            "devicename": self.get_device_name(canonical=True),
            "major": number[0] if number is not None else None,
            "minor": number[1] if number is not None else None,
            "size": self.size,
            "blocksize": self.block_size,
            "sectorsize": self.sector_size,
            "description": self.get_description(),
        }
