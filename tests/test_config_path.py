"""Tests for configuration path expressions."""

from __future__ import annotations

import pytest

from diskref.config_path import Predicate, Segment, find, parse_path
from diskref.errors import DatabaseError, PathExpressionError

TREE = {
    "system": {
        "hostname": "nas",
        "storage": {
            "filesystem": [
                {"uuid": "a1", "fsname": "/dev/disk/by-id/ata-one-part1", "type": "ext4"},
                {"uuid": "b2", "fsname": "/dev/sdb1", "type": "xfs"},
                {"uuid": "c3", "fsname": "/dev/sdc1", "type": "ext4"},
            ],
            "smart": {"enable": True},
        },
    }
}


def test_parse_path_segments_and_predicates() -> None:
    segments = parse_path("/system/storage/filesystem[fsname='/dev/disk/by-id/ata-[x]'][2]")

    assert segments == (
        Segment("system"),
        Segment("storage"),
        Segment(
            "filesystem",
            (Predicate(key="fsname", value="/dev/disk/by-id/ata-[x]"), Predicate(index=2)),
        ),
    )


def test_parse_path_root_and_double_quotes() -> None:
    assert parse_path("") == ()
    assert parse_path("/") == ()
    assert parse_path('a[b="c d"]') == (Segment("a", (Predicate(key="b", value="c d"),)),)


@pytest.mark.parametrize(
    "expression",
    ["a//b", "a/", "a[", "a]", "a[b='c]", "a[0]", "a[b=c]", "[1]", "a b"],
)
def test_parse_path_rejects_bad_syntax(expression: str) -> None:
    with pytest.raises(PathExpressionError):
        parse_path(expression)


def test_path_expression_error_is_database_error() -> None:
    assert issubclass(PathExpressionError, DatabaseError)


def test_find_mapping_node() -> None:
    matches = find(TREE, "/system/storage/smart")
    assert [match.value for match in matches] == [{"enable": True}]


def test_find_list_node_itself() -> None:
    matches = find(TREE, "/system/storage/filesystem")
    assert len(matches) == 1
    assert isinstance(matches[0].value, list)


def test_find_with_key_predicate() -> None:
    matches = find(TREE, "system/storage/filesystem[type='ext4']")
    assert [match.value["uuid"] for match in matches] == ["a1", "c3"]
    assert [match.key for match in matches] == [0, 2]


def test_find_with_index_after_filter() -> None:
    matches = find(TREE, "system/storage/filesystem[type='ext4'][2]")
    assert [match.value["uuid"] for match in matches] == ["c3"]
    assert find(TREE, "system/storage/filesystem[4]") == []


def test_find_through_list_items() -> None:
    matches = find(TREE, "system/storage/filesystem/uuid")
    assert [match.value for match in matches] == ["a1", "b2", "c3"]


def test_find_predicate_on_mapping_node() -> None:
    assert len(find(TREE, "system[hostname='nas']")) == 1
    assert find(TREE, "system[hostname='other']") == []


def test_find_missing_and_root() -> None:
    assert find(TREE, "system/network") == []
    assert find(TREE, "system/hostname/deeper") == []
    assert find(TREE, "") == []
