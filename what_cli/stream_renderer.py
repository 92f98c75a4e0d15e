"""Streaming answer rendering — fragments are written as they arrive."""

from typing import Iterable

from rich.console import Console

from .llm import EVENT_CONTENT, StreamEvent
from .theme import ACCENT

__all__ = ["render_stream"]


def render_stream(console: Console, events: Iterable[StreamEvent]) -> str:
    """Write each content fragment immediately and stop at the finish event.

    Returns the full answer text.
    """
    parts = []
    for event in events:
        if event.finished:
            break
        if event.kind != EVENT_CONTENT or not event.text:
            continue
        parts.append(event.text)
        console.print(event.text, style=ACCENT, end="",
                      markup=False, highlight=False, emoji=False, soft_wrap=True)
        stream = getattr(console, "file", None)
        if stream is not None and hasattr(stream, "flush"):
            stream.flush()
    return "".join(parts)
