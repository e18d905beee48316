"""Pytest configuration and test categorization.

Tests stay in a flat `tests/` directory and are categorized into `unit`,
`regression` and `e2e` via markers so CI can run targeted subsets, e.g.
`pytest -m "not e2e"` to skip everything that launches processes.
"""

from __future__ import annotations

import logging
import pathlib

import pytest

MARKERS = {
    "unit": "fast tests without external processes",
    "regression": "tests pinning previously fixed behaviour",
    "e2e": "tests launching processes or driving the CLI",
}


def pytest_configure(config: pytest.Config) -> None:
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-apply test category markers based on filename conventions."""
    for item in items:
        name = pathlib.Path(str(item.fspath)).name.lower()

        if "e2e" in name:
            item.add_marker(pytest.mark.e2e)
        elif "regression" in name:
            item.add_marker(pytest.mark.regression)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _reset_launchenv_logger():
    """Drop handlers installed by `setup_logging` so they do not outlive capsys."""
    yield
    logger = logging.getLogger("launchenv")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
