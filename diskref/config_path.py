"""Path expressions addressing nodes in a JSON-like configuration tree.

An expression is a slash separated list of segments, for example::

    /config/system/storage/filesystem[fsname='/dev/disk/by-id/ata-X'][1]

Each segment names a mapping key. Predicates narrow a list-valued node:
``[N]`` keeps the N-th item (1-based) and ``[key='value']`` keeps mapping
items whose ``key`` equals ``value``. Intermediate list-valued nodes without
predicates are expanded to all of their items.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, List, Optional, Tuple, Union

from .errors import PathExpressionError

__all__ = ["Predicate", "Segment", "Location", "parse_path", "find"]

_NAME = re.compile(r"[A-Za-z0-9_.\-]+")
_PREDICATE = re.compile(
    r"\[\s*(?:(?P<index>\d+)|(?P<key>[A-Za-z0-9_.\-]+)\s*=\s*"
    r"(?:'(?P<single>[^']*)'|\"(?P<double>[^\"]*)\"))\s*\]"
)


@dataclass(frozen=True)
class Predicate:
    index: Optional[int] = None
    key: Optional[str] = None
    value: Optional[str] = None

    def matches(self, item: Any) -> bool:
        if self.key is None:
            return True
        return isinstance(item, dict) and self.key in item and str(item[self.key]) == self.value


@dataclass(frozen=True)
class Segment:
    name: str
    predicates: Tuple[Predicate, ...] = ()


@dataclass
class Location:
    """A matched node: ``container[key]``."""

    container: Union[dict, list]
    key: Union[str, int]

    @property
    def value(self) -> Any:
        return self.container[self.key]


def _split(expression: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    depth = 0
    for char in expression:
        if quote is not None:
            if char == quote:
                quote = None
        elif char in "'\"" and depth:
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth < 0:
                raise PathExpressionError(expression, "unbalanced ']'")
        elif char == "/" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote is not None:
        raise PathExpressionError(expression, "unterminated quote")
    if depth:
        raise PathExpressionError(expression, "unbalanced '['")
    parts.append("".join(current))
    return parts


def parse_path(expression: str) -> Tuple[Segment, ...]:
    """Parse *expression* into segments; ``""`` and ``"/"`` address the root."""

    text = expression.strip()
    if text.startswith("/"):
        text = text[1:]
    if not text:
        return ()
    segments: List[Segment] = []
    for raw in _split(text):
        name_match = _NAME.match(raw)
        if name_match is None:
            raise PathExpressionError(expression, f"missing name in segment {raw!r}")
        position = name_match.end()
        predicates: List[Predicate] = []
        while position < len(raw):
            match = _PREDICATE.match(raw, position)
            if match is None:
                raise PathExpressionError(expression, f"bad predicate in segment {raw!r}")
            if match.group("index") is not None:
                index = int(match.group("index"))
                if index < 1:
                    raise PathExpressionError(expression, "indices start at 1")
                predicates.append(Predicate(index=index))
            else:
                value = match.group("single")
                if value is None:
                    value = match.group("double")
                predicates.append(Predicate(key=match.group("key"), value=value))
            position = match.end()
        segments.append(Segment(name=name_match.group(0), predicates=tuple(predicates)))
    return tuple(segments)


def _apply_predicates(location: Location, predicates: Tuple[Predicate, ...]) -> List[Location]:
    node = location.value
    if isinstance(node, list):
        selected = [Location(node, index) for index in range(len(node))]
    else:
        selected = [location]
    for predicate in predicates:
        if predicate.index is not None:
            position = predicate.index - 1
            selected = [selected[position]] if position < len(selected) else []
        else:
            selected = [item for item in selected if predicate.matches(item.value)]
    return selected


def find(tree: dict, segments: Union[str, Tuple[Segment, ...]]) -> List[Location]:
    """Return the locations addressed by *segments* within *tree*.

    The root itself is not addressable as a location, so an empty expression
    yields an empty list.
    """

    if isinstance(segments, str):
        segments = parse_path(segments)
    nodes: List[Any] = [tree]
    matches: List[Location] = []
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        matches = []
        for node in nodes:
            if not isinstance(node, dict) or segment.name not in node:
                continue
            location = Location(node, segment.name)
            if segment.predicates:
                matches.extend(_apply_predicates(location, segment.predicates))
            else:
                matches.append(location)
        if last:
            break
        nodes = []
        for match in matches:
            value = match.value
            if isinstance(value, list) and not segment.predicates:
                nodes.extend(value)
            else:
                nodes.append(value)
    return matches
