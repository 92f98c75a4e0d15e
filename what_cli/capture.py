"""Terminal capture sources: raw pane lines, recent commands, or a command run."""

from dataclasses import dataclass, field
from typing import List, Optional

from .environment import Environment
from .errors import EmptyCaptureError
from .logger import get_logger
from .segmenter import Segmentation, segment_commands
from .tools import PromptDetector, capture_pane, execute_command

_log = get_logger(__name__)

DEFAULT_SCROLLBACK = 500


@dataclass
class TerminalCapture:
    lines: List[str] = field(default_factory=list)
    segmentation: Optional[Segmentation] = None

    @classmethod
    def from_lines(cls, env: Environment, count: int) -> "TerminalCapture":
        return cls(lines=capture_pane(env, count))

    @classmethod
    def from_last_commands(cls, env: Environment, commands: int,
                           lines: int = DEFAULT_SCROLLBACK) -> "TerminalCapture":
        prompt = PromptDetector(env).detect()
        snapshot = capture_pane(env, lines)
        segmentation = segment_commands(snapshot, prompt, commands)
        return cls(lines=segmentation.lines, segmentation=segmentation)

    @classmethod
    def from_command(cls, env: Environment, command: str,
                     force: bool = False) -> "TerminalCapture":
        return cls(lines=execute_command(command, force=force, cwd=env.cwd))

    @property
    def partial(self) -> bool:
        return self.segmentation is not None and self.segmentation.partial

    def ensure_not_empty(self) -> "TerminalCapture":
        if not self.lines:
            raise EmptyCaptureError(
                "couldn't capture anything from the terminal, "
                "is SHELL env variable set correctly?"
            )
        return self

    def __len__(self) -> int:
        return len(self.lines)

    def __str__(self) -> str:
        return "\n".join(self.lines)
