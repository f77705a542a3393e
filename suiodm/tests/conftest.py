"""Unit tests configuration file."""

import pytest

from suiodm.bcs.registry import TypeRegistry


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def registry():
    """A fresh registry holding only the built-in types."""
    return TypeRegistry()
