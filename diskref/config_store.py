"""Path-addressed access to the JSON configuration database."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from . import settings
from .config_path import Location, find, parse_path
from .errors import DatabaseError
from .logging_utils import log_event

__all__ = ["ConfigObject", "ConfigDatabase"]


class ConfigObject:
    """A structured configuration value bound to a data model name.

    Keys may be dotted (``"smart.enable"``) to reach nested mappings.
    """

    def __init__(self, model: str = "", data: Optional[Mapping[str, Any]] = None) -> None:
        self.model = model
        self._data: Dict[str, Any] = copy.deepcopy(dict(data or {}))

    def __repr__(self) -> str:
        return f"ConfigObject({self.model!r}, {self._data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigObject):
            return NotImplemented
        return self.model == other.model and self._data == other._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def _walk(self, key: str, create: bool = False) -> tuple[Dict[str, Any], str]:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if not create:
                    raise KeyError(key)
                child = node[part] = {}
            node = child
        return node, parts[-1]

    def has(self, key: str) -> bool:
        try:
            node, leaf = self._walk(key)
        except KeyError:
            return False
        return leaf in node

    def get(self, key: str, default: Any = None) -> Any:
        try:
            node, leaf = self._walk(key)
        except KeyError:
            return default
        return node.get(leaf, default)

    def set(self, key: str, value: Any) -> None:
        node, leaf = self._walk(key, create=True)
        node[leaf] = value

    def remove(self, key: str) -> None:
        try:
            node, leaf = self._walk(key)
        except KeyError:
            return
        node.pop(leaf, None)

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], model: str = "") -> "ConfigObject":
        return cls(model, data)


Payload = Union[ConfigObject, Mapping[str, Any]]


def _payload(obj: Payload) -> Dict[str, Any]:
    if isinstance(obj, ConfigObject):
        return obj.to_dict()
    if isinstance(obj, Mapping):
        return copy.deepcopy(dict(obj))
    raise DatabaseError(f"cannot store object of type {type(obj).__name__}")


class ConfigDatabase:
    """Configuration tree loaded from a JSON file.

    One instance is created by the application and passed to the code that
    needs it. The class performs no locking: callers serialize mutations.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else settings.config_file_path()
        self._tree: Optional[Dict[str, Any]] = None

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any], path: Path | None = None) -> "ConfigDatabase":
        database = cls(path)
        database._tree = copy.deepcopy(dict(tree))
        return database

    def is_loaded(self) -> bool:
        return self._tree is not None

    def load(self, *, create: bool = False) -> "ConfigDatabase":
        """Read the configuration file.

        A missing file is an error unless *create* is set, in which case the
        database starts empty.
        """

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            if not create:
                raise DatabaseError(f"configuration file {self.path} does not exist") from None
            self._tree = {}
            log_event("diskref.config.created", path=self.path)
            return self
        except OSError as exc:
            raise DatabaseError(f"failed to read {self.path}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DatabaseError(f"configuration file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DatabaseError(f"configuration file {self.path} does not hold a JSON object")
        self._tree = data
        log_event("diskref.config.loaded", path=self.path)
        return self

    def save(self) -> Path:
        """Write the tree back to :attr:`path` and return it."""

        tree = self._require_tree()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(tree, indent=2, sort_keys=True)
        self.path.write_text(text + "\n", encoding="utf-8")
        log_event("diskref.config.saved", path=self.path)
        return self.path

    def _require_tree(self) -> Dict[str, Any]:
        if self._tree is None:
            raise DatabaseError("configuration database is not loaded")
        return self._tree

    def _find(self, expression: str) -> List[Location]:
        return find(self._require_tree(), parse_path(expression))

    def exists(self, expression: str) -> bool:
        return bool(self._find(expression))

    def get(self, expression: str, model: str = "") -> Union[ConfigObject, List[ConfigObject]]:
        """Return the object(s) addressed by *expression*.

        A single mapping yields one :class:`ConfigObject`; several matches or a
        list-valued node yield a list.
        """

        matches = self._find(expression)
        if not matches:
            raise DatabaseError(f"no configuration object matches {expression!r}")
        values: List[Any] = []
        for location in matches:
            value = location.value
            if isinstance(value, list) and len(matches) == 1:
                values.extend(value)
            else:
                values.append(value)
        objects: List[ConfigObject] = []
        for value in values:
            if not isinstance(value, dict):
                raise DatabaseError(
                    f"{expression!r} addresses a {type(value).__name__}, not an object"
                )
            objects.append(ConfigObject(model, value))
        if len(matches) == 1 and not isinstance(matches[0].value, list):
            return objects[0]
        return objects

    def set(self, expression: str, obj: Payload) -> None:
        """Store *obj* at *expression*.

        Existing list nodes receive the object as a new item, other existing
        nodes are overwritten. Missing intermediate mappings are created.
        """

        data = _payload(obj)
        matches = self._find(expression)
        if matches:
            for location in matches:
                if isinstance(location.value, list):
                    location.value.append(copy.deepcopy(data))
                else:
                    location.container[location.key] = copy.deepcopy(data)
            log_event("diskref.config.set", expression=expression, matches=len(matches))
            return

        segments = parse_path(expression)
        if not segments:
            raise DatabaseError("cannot set the configuration root")
        if any(segment.predicates for segment in segments):
            raise DatabaseError(f"cannot create {expression!r}: predicates matched nothing")
        node = self._require_tree()
        for segment in segments[:-1]:
            child = node.setdefault(segment.name, {})
            if not isinstance(child, dict):
                raise DatabaseError(
                    f"cannot create {expression!r}: {segment.name!r} is not an object"
                )
            node = child
        node[segments[-1].name] = data
        log_event("diskref.config.set", expression=expression, matches=0, created=True)

    def replace(self, expression: str, obj: Payload) -> None:
        data = _payload(obj)
        matches = self._find(expression)
        if not matches:
            raise DatabaseError(f"cannot replace {expression!r}: no match")
        for location in matches:
            location.container[location.key] = copy.deepcopy(data)
        log_event("diskref.config.replace", expression=expression, matches=len(matches))

    def update(self, expression: str, obj: Payload) -> None:
        data = _payload(obj)
        matches = self._find(expression)
        if not matches:
            raise DatabaseError(f"cannot update {expression!r}: no match")
        for location in matches:
            if not isinstance(location.value, dict):
                raise DatabaseError(f"cannot update {expression!r}: target is not an object")
        for location in matches:
            location.value.update(copy.deepcopy(data))
        log_event("diskref.config.update", expression=expression, matches=len(matches))

    def delete(self, expression: str) -> int:
        """Remove every node matching *expression* and return how many."""

        matches = self._find(expression)
        if not matches:
            raise DatabaseError(f"cannot delete {expression!r}: no match")
        # Remove list items from the highest index down so positions stay valid.
        ordered = sorted(
            matches,
            key=lambda location: location.key if isinstance(location.key, int) else -1,
            reverse=True,
        )
        for location in ordered:
            del location.container[location.key]
        log_event("diskref.config.delete", expression=expression, matches=len(matches))
        return len(matches)
