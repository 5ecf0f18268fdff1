"""Basic project scaffolding tests."""

import importlib


def test_package_importable() -> None:
    """Verify the top-level package is importable."""
    import battleship_guesser  # noqa: F401  (import used to ensure availability)

    assert battleship_guesser.__version__


def test_submodules_exist() -> None:
    modules = [
        "battleship_guesser.engine",
        "battleship_guesser.solver",
        "battleship_guesser.telemetry",
        "battleship_guesser.cli",
    ]

    for module in modules:
        assert importlib.import_module(module) is not None
