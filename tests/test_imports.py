"""Basic import tests for the diskref package."""


def test_import_package() -> None:
    import diskref  # noqa: F401


def test_import_modules() -> None:
    from diskref import aliases, block_device, config_store, identity  # noqa: F401


def test_import_cli_entrypoint() -> None:
    """Ensure the CLI module imports without missing dependencies."""

    __import__("diskref.cli")
    __import__("diskref.__main__")
