"""Subprocess-backed collaborators: shell prompt probe, tmux pane capture, command execution."""

from .shell import PromptDetector, execute_command, run_process, split_output_lines
from .tmux import capture_pane

__all__ = [
    "PromptDetector",
    "capture_pane",
    "execute_command",
    "run_process",
    "split_output_lines",
]
