"""Drive ``python -m diskref`` as a real process."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pexpect
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


def _spawn(*args: str, tmp_path: Path) -> pexpect.spawn:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
    env["DISKREF_LOG_EVENTS"] = "0"
    env["DISKREF_CONFIG_FILE"] = str(tmp_path / "config.json")
    return pexpect.spawn(
        sys.executable,
        ["-m", "diskref", *args],
        cwd=str(tmp_path),
        env=env,
        encoding="utf-8",
        timeout=30,
    )


def _run(*args: str, tmp_path: Path) -> tuple[int, str]:
    child = _spawn(*args, tmp_path=tmp_path)
    child.expect(pexpect.EOF)
    output = child.before
    child.close()
    return child.exitstatus, output


def test_process_config_set_then_get(tmp_path: Path) -> None:
    status, _ = _run("config", "set", "system/smart", '{"enable": true}', tmp_path=tmp_path)
    assert status == 0

    status, output = _run("config", "get", "system/smart", tmp_path=tmp_path)
    assert status == 0
    assert json.loads(output) == {"enable": True}


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="requires Linux device semantics")
def test_process_device_rejects_regular_file(tmp_path: Path) -> None:
    image = tmp_path / "disk.img"
    image.write_bytes(b"\0" * 4096)

    child = _spawn("device", str(image), tmp_path=tmp_path)
    child.expect("not found or not a block device")
    child.expect(pexpect.EOF)
    child.close()
    assert child.exitstatus == 1
