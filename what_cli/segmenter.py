"""
Recover the output of the last N shell commands
from a block of captured terminal text.

The shell's own prompt is the only delimiter. Scanning from the bottom of
the capture upwards, every line that starts with the prompt opens a new
command; everything read below it (and above the previous prompt) is that
command's output::

    >>> ls -al        <- prompt hit #2: the command we want, read upwards
    .       ...       <- output of `ls -al`
    foo.txt ...       <- output of `ls -al`
    >>> what last 1   <- prompt hit #1: the invocation of this tool

The first hit is always the prompt that launched this tool and is never
part of the result. Matching is a plain prefix test, so command output
that happens to start with the prompt text is taken for a prompt.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from .logger import get_logger

_log = get_logger(__name__)

# Neutral delimiter shown to the model instead of the user's prompt.
PROMPT_MARKER = ">>> "


@dataclass
class CommandBlock:
    """Lines of one executed command, prompt line first."""
    lines: List[str] = field(default_factory=list)

    @property
    def command(self) -> str:
        """The command line as typed, without the marker."""
        if not self.lines:
            return ""
        return self.lines[0].removeprefix(PROMPT_MARKER)

    @property
    def output(self) -> List[str]:
        return self.lines[1:]


@dataclass
class Segmentation:
    blocks: List[CommandBlock]
    requested: int

    @property
    def lines(self) -> List[str]:
        """All blocks flattened, oldest first."""
        return [line for block in self.blocks for line in block.lines]

    @property
    def partial(self) -> bool:
        """Fewer commands were found than were asked for."""
        return len(self.blocks) < self.requested

    def __len__(self) -> int:
        return len(self.blocks)

    def __str__(self) -> str:
        return "\n".join(self.lines)


def segment_commands(
    lines: Sequence[str],
    prompt: str,
    count: int,
    marker: str = PROMPT_MARKER,
) -> Segmentation:
    """Return the last ``count`` completed commands found in ``lines``.

    Blocks come back in chronological order. When the capture holds fewer
    prompts than needed, whatever was found is returned and the result is
    marked ``partial``.
    """
    if not prompt:
        raise ValueError("prompt must be a non-empty string")
    if count < 0:
        raise ValueError(f"command count must not be negative, got {count}")

    blocks: List[CommandBlock] = []
    current: List[str] = []
    prompt_hit = 0

    for line in reversed(lines):
        if line.startswith(prompt):
            prompt_hit += 1

            # the first hit is the prompt that executed this tool
            if prompt_hit > 1:
                current.append(marker + line[len(prompt):])
                current.reverse()
                blocks.append(CommandBlock(current))
                current = []

            if prompt_hit == count + 1:
                break
        elif prompt_hit > 0:
            current.append(line)

    # Lines left in `current` have no older prompt in the capture.
    if current:
        _log.info("dropped %d lines above the oldest prompt in capture", len(current))

    blocks.reverse()
    result = Segmentation(blocks=blocks, requested=count)
    if result.partial:
        _log.warning(
            "found %d of %d requested commands, capture more lines for older history",
            len(blocks), count,
        )
    return result
