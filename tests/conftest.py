"""Shared test fixtures for apizza.

Provides isolated config environments, in-memory stores with a controllable
clock, output state management, and a CLI runner. These fixtures are
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from apizza.output import OutputFormat, OutputManager, reset_output, set_output
from apizza.store import MemoryStore


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references go stale. Resetting forces a
    fresh manager on next use. The Rich handler that the CLI attaches to
    the ``apizza`` logger is removed for the same reason.
    """
    yield
    reset_output()
    logger = logging.getLogger("apizza")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME and XDG_DATA_HOME to
    subdirectories of tmp_path, forces the XDG code path, and clears all
    APIZZA_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("apizza.config._is_xdg_platform", lambda: True)

    for var in ["APIZZA_BASE_URL", "APIZZA_MENU_TTL", "APIZZA_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Stores and time
# ---------------------------------------------------------------------------


class FakeClock:
    """A settable clock standing in for ``time.time``."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    store = MemoryStore()
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Menu payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_menu() -> dict[str, Any]:
    """A trimmed menu document in the ordering service's shape."""
    return {
        "Categorization": {
            "Food": {
                "Categories": [
                    {
                        "Code": "Pizza",
                        "Name": "Pizza",
                        "Categories": [
                            {
                                "Code": "Specialty",
                                "Name": "Specialty Pizzas",
                                "Categories": [],
                                "Products": ["S_DELUXE"],
                            }
                        ],
                        "Products": [],
                    },
                    {
                        "Code": "Drinks",
                        "Name": "Drinks",
                        "Categories": [],
                        "Products": ["F_COKE"],
                    },
                    {"Code": "Empty", "Name": "", "Categories": [], "Products": []},
                ]
            },
            "Preconfigured": {
                "Categories": [
                    {
                        "Code": "PopularItems",
                        "Name": "Popular Items",
                        "Categories": [],
                        "Products": ["14SCEXTRAV"],
                    }
                ]
            },
        },
        "Products": {
            "S_DELUXE": {
                "Code": "S_DELUXE",
                "Name": "Deluxe",
                "Variants": ["14SCDELUX"],
                "ProductType": "Pizza",
                "Tags": {"DefaultToppings": "X=1,C=1,P=1"},
            },
            "F_COKE": {"Code": "F_COKE", "Name": "Coke", "Variants": ["2LCOKE"]},
        },
        "Variants": {
            "14SCDELUX": {"Code": "14SCDELUX", "Name": "Large Deluxe"},
            "2LCOKE": {"Code": "2LCOKE", "Name": "2-Liter Coke"},
        },
        "PreconfiguredProducts": {
            "14SCEXTRAV": {"Code": "14SCEXTRAV", "Name": "Large ExtravaganZZa", "Size": "Large"},
        },
        "Toppings": {
            "Pizza": {
                "X": {"Code": "X", "Name": "Robust Inspired Tomato Sauce"},
                "C": {"Code": "C", "Name": "Cheese"},
                "P": {"Code": "P", "Name": "Pepperoni"},
            },
            "Sandwich": {"Si": {"Code": "Si", "Name": "Spinach"}},
        },
    }


@pytest.fixture
def sample_menu_bytes(sample_menu: dict[str, Any]) -> bytes:
    return json.dumps(sample_menu).encode("utf-8")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_app():
    """The root Typer app with built-in commands registered."""
    from apizza.app import app, register_commands

    register_commands()
    return app
