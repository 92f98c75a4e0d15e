"""Shell subprocess helpers: prompt detection and diagnosed-command execution."""

import re
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from rich.text import Text

from ..environment import Environment
from ..errors import ProcessError, UnsupportedShellError
from ..logger import get_logger

_log = get_logger(__name__)

# OSC (window title etc.) ended by BEL or ST; rich only drops the ESC ] pair.
_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")


def split_output_lines(output: str) -> List[str]:
    """Split captured output on line feeds, keeping blank lines.

    A trailing line feed does not produce a final empty line and a
    carriage return before the line feed is dropped.
    """
    if not output:
        return []
    lines = output.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def strip_ansi(text: str) -> str:
    """Remove terminal styling escape sequences."""
    # bash ${PS1@P} keeps \[ \] as \001/\002 around non-printing runs
    text = _OSC_RE.sub("", text)
    return Text.from_ansi(text).plain.replace("\x01", "").replace("\x02", "")


def run_process(args: Sequence[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    """Run ``args`` to completion, capturing stdout/stderr as text.

    Spawn failures become :class:`ProcessError`; the exit status is left
    for the caller to judge.
    """
    program = args[0]
    try:
        return subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except (OSError, ValueError) as e:
        raise ProcessError(program, f"couldn't spawn process: {e}") from e


class PromptDetector:
    """Derive the literal prompt the active shell prints before each command."""

    # One invocation style per shell family.
    PROMPT_COMMANDS: Dict[str, Tuple[str, ...]] = {
        "zsh": ("-i", "-c", "print -P $PS1"),
        "bash": ("-i", "-c", 'echo -e "${PS1@P}"'),
        "sh": ("-i", "-c", 'echo -e "${PS1@P}"'),
    }

    def __init__(self, env: Environment):
        self.env = env

    def command(self) -> List[str]:
        shell = self.env.require_shell()
        arguments = self.PROMPT_COMMANDS.get(self.env.shell_name)
        if arguments is None:
            raise UnsupportedShellError(shell)
        return [shell, *arguments]

    def detect(self) -> str:
        args = self.command()
        # Prompts may embed the cwd or a VCS branch, so probe from where we are.
        result = run_process(args, cwd=self.env.cwd)
        if result.returncode != 0:
            raise ProcessError(
                self.env.shell_name,
                f"prompt probe exited with status {result.returncode}",
                result.returncode,
            )

        # Interactive shells may print a banner first; the prompt is last.
        candidates = [line for line in split_output_lines(result.stdout) if line.strip()]
        if not candidates:
            raise ProcessError(self.env.shell_name, "couldn't get last line in terminal prompt output")

        prompt = strip_ansi(candidates[-1])
        if not prompt:
            raise ProcessError(self.env.shell_name, "shell prompt is empty after removing styling")
        _log.info("detected %s prompt (%d chars)", self.env.shell_name, len(prompt))
        return prompt


def execute_command(command: str, force: bool = False,
                    cwd: Optional[Path] = None) -> List[str]:
    """Run ``command`` and return its stdout lines followed by its stderr lines.

    The point is to diagnose a failure, so a command that exits successfully
    is refused unless ``force`` is set.
    """
    try:
        args = shlex.split(command)
    except ValueError as e:
        raise ProcessError(command, f"couldn't parse command: {e}") from e
    if not args:
        raise ProcessError(command or "<empty>", "no command given")

    result = run_process(args, cwd=cwd)
    _log.info("executed %s, status %d", args[0], result.returncode)
    if not force and result.returncode == 0:
        raise ProcessError(
            args[0],
            "process didn't exit with error status code, aborting",
            result.returncode,
        )
    return split_output_lines(result.stdout) + split_output_lines(result.stderr)
