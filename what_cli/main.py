"""
what v0.4.0 — ask a language model what went wrong in your terminal.

Command: what [OPTIONS] (lines | last | execute) ...
"""

import sys
from dataclasses import dataclass
from typing import Callable, Optional

import click
from rich.console import Console

from . import __version__
from .capture import DEFAULT_SCROLLBACK, TerminalCapture
from .config import DEFAULT_MODEL, MODELS, normalize_model, resolve_token
from .environment import Environment
from .errors import WhatError
from .llm import DiagnosticClient
from .logger import get_logger, setup_logger
from .progress import ProgressIndicator
from .rendering import confirm_output, render_capture, render_error
from .stream_renderer import render_stream

console = Console()
_log = get_logger(__name__)

CaptureSource = Callable[[Environment], TerminalCapture]


@dataclass
class RunOptions:
    quiet: bool = False
    yes: bool = False
    attach: Optional[str] = None
    model: str = DEFAULT_MODEL
    config_path: Optional[str] = None
    verbose: bool = False


def run_pipeline(
    source: CaptureSource,
    options: RunOptions,
    env: Environment,
    out: Console,
    client_factory: Callable[..., DiagnosticClient] = DiagnosticClient,
) -> int:
    """Capture, optionally confirm, then stream the diagnosis. Returns the exit code."""
    model = normalize_model(options.model)
    token = resolve_token(env, options.config_path)
    progress = ProgressIndicator(out)

    capture = progress.run(
        lambda: source(env).ensure_not_empty(),
        "capturing terminal output",
        "terminal output captured",
        "couldn't capture terminal output",
    )
    _log.info("captured %d lines for diagnosis", len(capture))

    if not options.quiet:
        render_capture(out, capture.lines, partial=capture.partial)
        if not options.yes and not confirm_output(out):
            return 0

    client = client_factory(token, model=model)
    stream = progress.run(
        lambda: client.open_stream(str(capture), options.attach),
        "waiting for diagnosis",
        "diagnosis received",
        "couldn't get a diagnosis",
    )
    render_stream(out, stream.events())
    out.print()
    return 0


def _run(ctx: click.Context, source: CaptureSource) -> None:
    options: RunOptions = ctx.obj
    try:
        env = Environment.from_os()
        code = run_pipeline(source, options, env, console)
    except WhatError as e:
        _log.info("run failed: %s", e)
        render_error(console, str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\naborted", style="bold red")
        sys.exit(130)
    sys.exit(code)


@click.group()
@click.version_option(__version__, prog_name="what")
@click.option("--quiet", "-q", is_flag=True,
              help="Don't display captured output (won't ask for confirmation)")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.option("--attach", "-a", default=None, help="Attach an extra message to the sent data")
@click.option("--model", "-m", type=click.Choice(MODELS, case_sensitive=False),
              default=DEFAULT_MODEL, show_default=True, help="Model to use for the diagnosis")
@click.option("--config", "-c", "config_path", default=None,
              type=click.Path(dir_okay=False), help="Config file holding the API token")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, quiet, yes, attach, model, config_path, verbose):
    """what: diagnose recent terminal output with a language model."""
    setup_logger(verbose=verbose)
    ctx.obj = RunOptions(
        quiet=quiet,
        yes=yes,
        attach=attach,
        model=model,
        config_path=config_path,
        verbose=verbose,
    )


@cli.command()
@click.argument("count", type=click.IntRange(min=1))
@click.pass_context
def lines(ctx, count):
    """Capture COUNT lines from the terminal (inside a tmux pane only)."""
    _run(ctx, lambda env: TerminalCapture.from_lines(env, count))


@cli.command()
@click.argument("count", type=click.IntRange(min=1))
@click.option("--lines", "-l", "scrollback", type=click.IntRange(min=1),
              default=DEFAULT_SCROLLBACK, show_default=True,
              help="How many pane lines to read to find those commands")
@click.pass_context
def last(ctx, count, scrollback):
    """Capture the output of the last COUNT commands."""
    _run(ctx, lambda env: TerminalCapture.from_last_commands(env, count, scrollback))


@cli.command()
@click.argument("command")
@click.option("--force", "-f", is_flag=True,
              help="Continue even if the process didn't exit with an error code")
@click.pass_context
def execute(ctx, command, force):
    """Run COMMAND and capture its output when it fails."""
    _run(ctx, lambda env: TerminalCapture.from_command(env, command, force))


if __name__ == "__main__":
    cli()
