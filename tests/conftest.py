import pytest
from rich.console import Console

import flagbind


@pytest.fixture
def console():
    return Console(width=70, force_terminal=True, highlight=False, color_system=None, legacy_windows=False)


@pytest.fixture
def binder(console):
    return flagbind.Binder(program="prog", console=console, error_console=console)


@pytest.fixture
def assert_parse(binder):
    """Parse ``cmd`` into ``record`` and compare against ``expected``."""

    def inner(record, cmd, expected):
        actual = binder.parse(record, cmd)
        assert actual is record
        assert actual == expected

    return inner
