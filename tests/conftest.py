"""Shared fixtures for what tests."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from what_cli.environment import Environment


@pytest.fixture
def fake_env(tmp_path):
    """An environment inside tmux with bash, rooted at a temp home."""
    return Environment(
        shell="/bin/bash",
        home=tmp_path,
        tmux="/tmp/tmux-1000/default,1234,0",
        token=None,
        cwd=tmp_path,
    )


@pytest.fixture
def buffer_console():
    """A non-terminal Rich Console writing to a StringIO; returns (console, buffer)."""
    buf = io.StringIO()
    console = Console(file=buf, force_terminal=False, width=120)
    return console, buf
