"""Selection of the preferred ``/dev/disk/by-id`` alias for a device."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional, Tuple, Union

from . import settings

__all__ = [
    "AliasCandidate",
    "alias_rank",
    "natural_key",
    "compare_aliases",
    "sort_aliases",
    "select_best",
]

# Only the first character of an alias name is inspected, so ``abc-device``
# ranks alongside ``ata-...`` names. Stored device references depend on it.
_RANK_BY_PREFIX = {
    "a": 0,  # ata-
    "w": 1,  # wwn-
    "s": 2,  # scsi-
}
_FALLBACK_RANK = 3

_DIGITS = re.compile(r"(\d+)")

NaturalKey = Tuple[Union[str, int], ...]


def alias_rank(name: str) -> int:
    """Return the precedence class of *name* (lower is preferred)."""

    return _RANK_BY_PREFIX.get(name[:1], _FALLBACK_RANK)


def natural_key(text: str) -> NaturalKey:
    """Return a key ordering *text* with digit runs compared by value.

    Splitting on a captured group puts digit runs at odd positions, so two keys
    never compare an ``int`` against a ``str``.
    """

    parts = _DIGITS.split(text)
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


@dataclass(frozen=True)
class AliasCandidate:
    """An alias name (last path segment only) considered for selection."""

    name: str

    @property
    def rank(self) -> int:
        return alias_rank(self.name)

    @property
    def sort_key(self) -> Tuple[int, NaturalKey, str]:
        # The raw name settles names that are equal under natural ordering,
        # e.g. ``disk-01`` and ``disk-1``.
        return (self.rank, natural_key(self.name), self.name)


def compare_aliases(left: str, right: str) -> int:
    """Three-way comparison of two alias names; negative when *left* wins."""

    left_key = AliasCandidate(left).sort_key
    right_key = AliasCandidate(right).sort_key
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def sort_aliases(names: Iterable[str]) -> List[str]:
    """Return *names* ordered from most to least preferred."""

    candidates = [AliasCandidate(name) for name in set(names)]
    candidates.sort(key=lambda candidate: candidate.sort_key)
    return [candidate.name for candidate in candidates]


def select_best(
    names: Iterable[str], directory: str = settings.DEFAULT_ALIAS_DIR
) -> Optional[str]:
    """Return ``<directory>/<name>`` for the preferred alias, or ``None``."""

    candidates = [AliasCandidate(name) for name in names if name]
    if not candidates:
        return None
    best = min(candidates, key=lambda candidate: candidate.sort_key)
    return f"{directory.rstrip('/')}/{best.name}"
