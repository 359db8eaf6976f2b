"""Command line entry point for diskref."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .block_device import BlockDevice
from .config_store import ConfigDatabase, ConfigObject
from .errors import DiskrefError
from .logging_utils import log_event


def _make_device(path: str) -> BlockDevice:
    return BlockDevice(path)


def _open_database(path: Optional[str], *, create: bool = False) -> ConfigDatabase:
    database = ConfigDatabase(Path(path) if path else None)
    return database.load(create=create)


def _parse_object(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DiskrefError(f"invalid JSON object: {exc}") from exc
    if not isinstance(data, dict):
        raise DiskrefError("value must be a JSON object")
    return data


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def _cmd_device(args: argparse.Namespace) -> int:
    device = _make_device(args.device)
    device.assert_exists()
    if args.load_geometry:
        device.load_geometry()
    _print_json(device.to_dict())
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    action = args.action
    if action == "get":
        database = _open_database(args.config)
        result = database.get(args.expression)
        if isinstance(result, ConfigObject):
            _print_json(result.to_dict())
        else:
            _print_json([item.to_dict() for item in result])
        return 0

    if action == "delete":
        database = _open_database(args.config)
        removed = database.delete(args.expression)
        database.save()
        print(f"Removed {removed} object(s).")
        return 0

    if action == "set-device":
        device = _make_device(args.device)
        device.assert_exists()
        reference = device.get_preferred_device_file()
        database = _open_database(args.config, create=True)
        if database.exists(args.expression):
            database.update(args.expression, {"devicefile": reference})
        else:
            database.set(args.expression, {"devicefile": reference})
        database.save()
        print(reference)
        return 0

    payload = _parse_object(args.value)
    database = _open_database(args.config, create=action == "set")
    getattr(database, action)(args.expression, payload)
    database.save()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diskref",
        description="Inspect block device identities and edit the configuration database",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    device = commands.add_parser("device", help="Show the identity of a block device")
    device.add_argument("device", help="Device file, e.g. /dev/sda or a by-id link")
    device.add_argument(
        "--load-geometry",
        action="store_true",
        help="Read size, block size and sector size from sysfs",
    )
    device.set_defaults(handler=_cmd_device)

    config = commands.add_parser("config", help="Query or modify the configuration database")
    config.add_argument(
        "--config",
        metavar="FILE",
        help="Configuration file (defaults to $DISKREF_CONFIG_FILE or /etc/diskref/config.json)",
    )
    actions = config.add_subparsers(dest="action", required=True)
    get = actions.add_parser("get", help="Print the object(s) at a path expression")
    get.add_argument("expression")
    for name, help_text in (
        ("set", "Store an object, creating missing parents"),
        ("replace", "Overwrite an existing object"),
        ("update", "Merge keys into an existing object"),
    ):
        sub = actions.add_parser(name, help=help_text)
        sub.add_argument("expression")
        sub.add_argument("value", help="JSON object")
    delete = actions.add_parser("delete", help="Remove the object(s) at a path expression")
    delete.add_argument("expression")
    set_device = actions.add_parser(
        "set-device",
        help="Record the stable path of a device under 'devicefile'",
    )
    set_device.add_argument("expression")
    set_device.add_argument("device")
    config.set_defaults(handler=_cmd_config)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the diskref tool and return the process exit status."""

    parser = build_parser()
    args = parser.parse_args(argv)
    log_event("diskref.cli.invoked", command=args.command, action=getattr(args, "action", None))
    try:
        return args.handler(args)
    except DiskrefError as exc:
        print(f"diskref: {exc}", file=sys.stderr)
        return 1
