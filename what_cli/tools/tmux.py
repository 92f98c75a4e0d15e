"""Terminal scrollback capture through tmux."""

from typing import List

from ..environment import Environment
from ..errors import ProcessError
from ..logger import get_logger
from .shell import run_process, split_output_lines

_log = get_logger(__name__)


def capture_command(count: int) -> List[str]:
    return ["tmux", "capture-pane", "-T", "-pS", f"-{count}"]


def capture_pane(env: Environment, count: int) -> List[str]:
    """Return up to ``count`` trailing lines of the active pane, oldest first."""
    if count < 1:
        raise ValueError(f"capture depth must be positive, got {count}")
    env.require_tmux()

    result = run_process(capture_command(count), cwd=env.cwd)
    if result.returncode != 0:
        raise ProcessError(
            "tmux",
            f"capture exited with error status code {result.returncode}",
            result.returncode,
        )

    lines = split_output_lines(result.stdout)
    _log.info("captured %d pane lines (requested %d)", len(lines), count)
    return lines
