"""Tests for by-id alias ranking and selection."""

from functools import cmp_to_key
from itertools import permutations

import pytest

from diskref.aliases import (
    AliasCandidate,
    alias_rank,
    compare_aliases,
    natural_key,
    select_best,
    sort_aliases,
)


@pytest.mark.parametrize(
    "name, rank",
    [
        ("ata-Samsung_SSD_860_S3Z1NB0K", 0),
        ("abc-device", 0),
        ("wwn-0x5002538e40a1b2c3", 1),
        ("scsi-SATA_Samsung_SSD", 2),
        ("nvme-eui.0025385b71b0", 3),
        ("usb-Kingston_DataTraveler", 3),
        ("", 3),
    ],
)
def test_alias_rank_uses_first_character(name: str, rank: int) -> None:
    assert alias_rank(name) == rank
    assert AliasCandidate(name).rank == rank


def test_select_best_empty() -> None:
    assert select_best(set()) is None
    assert select_best([]) is None


def test_select_best_single_unknown_class() -> None:
    assert select_best({"xyz-foo"}) == "/dev/disk/by-id/xyz-foo"


def test_select_best_natural_tie_break() -> None:
    result = select_best({"ata-device-2", "ata-device-10"})
    assert result == "/dev/disk/by-id/ata-device-2"


def test_select_best_is_order_independent() -> None:
    names = [
        "scsi-0ATA_disk_7",
        "wwn-0x50014ee2b5a4c3d1",
        "ata-WDC_WD40EFRX-68N32N0_WD-WCC7K1",
        "ata-WDC_WD40EFRX-68N32N0_WD-WCC7K1-part1",
        "nvme-eui.1",
    ]
    results = {select_best(order) for order in permutations(names)}
    assert results == {"/dev/disk/by-id/ata-WDC_WD40EFRX-68N32N0_WD-WCC7K1"}


@pytest.mark.parametrize(
    "names, expected",
    [
        ({"wwn-0x9", "scsi-1", "other"}, "wwn-0x9"),
        ({"scsi-1", "other-0"}, "scsi-1"),
        ({"ata-z", "wwn-0x0"}, "ata-z"),
        ({"zzz", "aaa"}, "aaa"),
        # Precedence beats natural order.
        ({"scsi-1", "wwn-99"}, "wwn-99"),
        # Documented quirk: anything starting with "a" outranks world-wide names.
        ({"abc-device", "wwn-0x1"}, "abc-device"),
    ],
)
def test_select_best_class_precedence(names, expected: str) -> None:
    assert select_best(names) == f"/dev/disk/by-id/{expected}"


def test_select_best_custom_directory() -> None:
    assert select_best(["ata-x"], directory="/dev/disk/by-id/") == "/dev/disk/by-id/ata-x"
    assert select_best(["ata-x"], directory="/custom") == "/custom/ata-x"


def test_natural_key_orders_numbers_by_value() -> None:
    names = ["disk-10", "disk-2", "disk-1", "disk-02b"]
    assert sorted(names, key=natural_key) == ["disk-1", "disk-2", "disk-02b", "disk-10"]


def test_leading_zero_names_have_total_order() -> None:
    assert compare_aliases("ata-disk-01", "ata-disk-1") != 0
    assert select_best(["ata-disk-1", "ata-disk-01"]) == select_best(
        ["ata-disk-01", "ata-disk-1"]
    )


def test_compare_aliases_matches_sort_aliases() -> None:
    names = ["scsi-3", "ata-10", "ata-9", "wwn-1", "misc", "ata-9"]
    by_cmp = sorted(set(names), key=cmp_to_key(compare_aliases))
    assert by_cmp == sort_aliases(names)
    assert by_cmp == ["ata-9", "ata-10", "wwn-1", "scsi-3", "misc"]
    assert compare_aliases("ata-9", "ata-9") == 0
