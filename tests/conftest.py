import os
import sys

import pytest

import how_select


@pytest.fixture
def picker(monkeypatch):
    """Use the Python interpreter as the picker and /dev/null as the terminal.

    Returns a function turning a snippet of Python into picker arguments.
    """
    monkeypatch.setattr(how_select, "HOW_COMMAND", sys.executable)
    monkeypatch.setattr(how_select, "TTY_PATH", os.devnull)

    def args(code: str):
        return ["-c", code]

    return args


@pytest.fixture(autouse=True)
def ambient_options(monkeypatch):
    monkeypatch.setattr(how_select, "options", how_select.ShellOptions())
    monkeypatch.setattr(how_select, "ALIASES", {})
    return how_select.options
