"""Error types raised by diskref components."""

from __future__ import annotations

__all__ = [
    "DiskrefError",
    "DeviceNotFoundError",
    "ResolutionError",
    "MetadataUnavailableError",
    "MalformedRecordError",
    "DatabaseError",
    "PathExpressionError",
]


class DiskrefError(RuntimeError):
    """Base class for every error raised by this package."""


class DeviceNotFoundError(DiskrefError):
    """The path does not currently refer to a block-special file."""

    def __init__(self, device: str) -> None:
        super().__init__(f"device {device} not found or not a block device")
        self.device = device


class ResolutionError(DiskrefError):
    """A device path could not be resolved to its canonical form."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"unable to resolve {path}: {reason}")
        self.path = path
        self.reason = reason


class MetadataUnavailableError(DiskrefError):
    """udev has no record for the device."""

    def __init__(self, device: str, detail: str = "") -> None:
        message = f"no device metadata available for {device}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.device = device


class MalformedRecordError(DiskrefError):
    """A kernel record exists but its contents cannot be parsed."""

    def __init__(self, path: str, content: str) -> None:
        super().__init__(f"malformed kernel record {path}: {content!r}")
        self.path = path
        self.content = content


class DatabaseError(DiskrefError):
    """The configuration database rejected an operation."""


class PathExpressionError(DatabaseError):
    """A configuration path expression is syntactically invalid."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"invalid path expression {expression!r}: {reason}")
        self.expression = expression
