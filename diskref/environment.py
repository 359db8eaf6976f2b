"""Injectable access to the filesystem, udev and sysfs."""

from __future__ import annotations

from dataclasses import dataclass
import os
import stat
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from . import settings

__all__ = ["CommandOutput", "DeviceEnvironment"]


@dataclass
class CommandOutput:
    """Minimal command result container for dependency injection."""

    stdout: str
    returncode: int = 0
    stderr: str = ""


class DeviceEnvironment:
    """Encapsulate external interactions needed to identify block devices.

    Every callable can be replaced, which lets tests describe a fake machine
    without touching ``/dev`` or ``/sys``.
    """

    def __init__(
        self,
        *,
        run: Callable[[Sequence[str]], CommandOutput] | None = None,
        path_exists: Callable[[str], bool] | None = None,
        realpath: Callable[[str], str] | None = None,
        is_block_special: Callable[[str], bool] | None = None,
        read_text: Callable[[Path], Optional[str]] | None = None,
        sysfs_root: Path | None = None,
    ) -> None:
        self.run = run or self._default_run
        self.path_exists = path_exists or os.path.exists
        self.realpath = realpath or self._default_realpath
        self.is_block_special = is_block_special or self._default_is_block_special
        self.read_text = read_text or self._default_read_text
        self.sysfs_root = sysfs_root if sysfs_root is not None else settings.sysfs_root()

    @staticmethod
    def _default_run(cmd: Sequence[str]) -> CommandOutput:
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandOutput(stdout="", returncode=127, stderr=str(exc))
        return CommandOutput(
            stdout=completed.stdout,
            returncode=completed.returncode,
            stderr=completed.stderr,
        )

    @staticmethod
    def _default_realpath(path: str) -> str:
        return os.path.realpath(path, strict=True)

    @staticmethod
    def _default_is_block_special(path: str) -> bool:
        try:
            mode = os.stat(path).st_mode
        except OSError:
            return False
        return stat.S_ISBLK(mode)

    @staticmethod
    def _default_read_text(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except (FileNotFoundError, NotADirectoryError):
            return None

    def block_record(self, name: str, *parts: str) -> Path:
        """Return the sysfs path ``class/block/<name>/<parts...>``."""

        return self.sysfs_root.joinpath("class", "block", name, *parts)
