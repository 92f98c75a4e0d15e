"""Terminal rendering and user confirmation logic."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .theme import DIM, ERROR, SUCCESS, TEXT, WARN

__all__ = ["render_capture", "confirm_output", "render_error"]


def render_capture(console: Console, lines, partial: bool = False) -> None:
    """Show the captured text the way it will be sent."""
    body = "\n".join(lines)
    console.print(Text(f"```\n{body}\n```", style=f"italic {DIM}"))
    console.print(Text(f"captured {len(lines)} lines", style=f"italic {DIM}"))
    if partial:
        console.print(Text("fewer commands than requested were found", style=f"italic {WARN}"))


def confirm_output(console: Console) -> bool:
    try:
        ans = console.input(f"[bold {TEXT}]confirm output [Y/n][/bold {TEXT}] ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        ans = "n"
    if ans in ("", "y", "yes"):
        console.print("output confirmed", style=f"bold {SUCCESS}")
        return True
    console.print("aborting...", style=f"bold {ERROR}")
    return False


def render_error(console: Console, message: str):
    panel = Panel(
        Text(message, style=ERROR),
        title=f"[bold {ERROR}]Error[/bold {ERROR}]",
        title_align="left",
        border_style=ERROR,
        padding=(0, 2),
    )
    console.print()
    console.print(panel)
