from pathlib import Path
import sys

import pytest

# Ensure repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


@pytest.fixture(autouse=True)
def _isolate_diskref_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host ``DISKREF_*`` variables from leaking into tests."""

    for name in (
        "DISKREF_ALIAS_DIR",
        "DISKREF_CONFIG_FILE",
        "DISKREF_LOG_EVENTS",
        "DISKREF_LOG_FILE",
        "DISKREF_SYSFS_ROOT",
    ):
        monkeypatch.delenv(name, raising=False)
