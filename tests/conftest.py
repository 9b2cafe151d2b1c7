"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

# Linux CI runners are often headless. Force an offscreen backend only there.
if (
    sys.platform.startswith("linux")
    and "QT_QPA_PLATFORM" not in os.environ
    and "DISPLAY" not in os.environ
    and "WAYLAND_DISPLAY" not in os.environ
):
    os.environ["QT_QPA_PLATFORM"] = "offscreen"

FAKE_ENGINE = Path(__file__).parent / "engine" / "fake_engine.py"

FakeEngineCommand = Callable[..., list[str]]


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QApplication for UI tests."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def fake_engine_command() -> FakeEngineCommand:
    """Build the argv for the scripted UCI engine in ``tests/engine``.

    Keyword arguments become flags: ``moves=["e7e5"]`` -> ``--moves e7e5``,
    ``hang_on_go=True`` -> ``--hang-on-go``.
    """

    def build(**flags: object) -> list[str]:
        argv = [sys.executable, str(FAKE_ENGINE)]
        for key, value in flags.items():
            option = "--" + key.replace("_", "-")
            if value is True:
                argv.append(option)
            elif value is False or value is None:
                continue
            elif isinstance(value, (list, tuple)):
                argv += [option, ",".join(str(v) for v in value)]
            else:
                argv += [option, str(value)]
        return argv

    return build
