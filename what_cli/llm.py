"""Streaming chat-completion client for terminal diagnoses."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional

import requests

from .config import COMPLETIONS_URL, DEFAULT_MODEL
from .errors import ProtocolError, RemoteServiceError
from .logger import get_logger

_log = get_logger(__name__)

SYSTEM_PROMPT = (
    "you are a helpful assistant, you get commands outputs and you diagnose "
    "what was the issue and given a solution, do not send markdown text"
)

# Fixed per-status messages; the response body is never shown.
STATUS_MESSAGES = {
    401: "Incorrect API key provided",
    403: "Country, region, or territory not supported",
    429: "Exceeded current quota or too many requests",
    500: "Server had an error while processing the request",
    503: "The engine is currently overloaded, try again later",
}

EVENT_OPEN = "open"
EVENT_CONTENT = "content"
EVENT_FINISH = "finish"

DONE_SENTINEL = "[DONE]"


def status_message(status: int) -> str:
    return STATUS_MESSAGES.get(status, f"unexpected error occurred (status {status})")


@dataclass(frozen=True)
class StreamEvent:
    kind: str
    text: str = ""

    @property
    def finished(self) -> bool:
        return self.kind == EVENT_FINISH


def build_messages(capture_text: str, note: Optional[str] = None) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"{capture_text}\n{note or ''}"},
    ]


def build_payload(model: str, capture_text: str, note: Optional[str] = None) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": build_messages(capture_text, note),
        "stream": True,
    }


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """Group event-stream lines into the data payload of each event.

    Multiple ``data:`` lines of one event are joined with a line feed; an
    empty line dispatches the event. Comments and other fields are skipped.
    """
    buffer: List[str] = []
    for line in lines:
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if name != "data":
            continue
        buffer.append(value[1:] if value.startswith(" ") else value)
    if buffer:
        yield "\n".join(buffer)


def _decode_lines(lines: Iterable[bytes]) -> Iterator[str]:
    # Split as bytes: decoded text would also break on U+2028 and friends.
    for line in lines:
        yield line.decode("utf-8", errors="replace")


def decode_event(data: str) -> StreamEvent:
    """Decode one message payload into a content or finish event."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"malformed event payload: {e}") from e

    try:
        choice = payload["choices"][0]
        finish_reason = choice.get("finish_reason")
        delta = choice["delta"]
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise ProtocolError(f"unexpected event payload: {data[:200]}") from e

    if finish_reason == "stop":
        return StreamEvent(EVENT_FINISH)
    if not isinstance(delta, dict):
        raise ProtocolError(f"unexpected delta in event payload: {data[:200]}")

    content = delta.get("content")
    if content is None:
        return StreamEvent(EVENT_CONTENT, "")
    if not isinstance(content, str):
        raise ProtocolError(f"unexpected content in event payload: {data[:200]}")
    return StreamEvent(EVENT_CONTENT, content)


class DiagnosticStream:
    """An opened completion response, consumed once as events."""

    def __init__(self, response: requests.Response):
        self.response = response

    def events(self) -> Iterator[StreamEvent]:
        response = self.response
        try:
            yield StreamEvent(EVENT_OPEN)
            for data in iter_sse_data(_decode_lines(response.iter_lines())):
                if data.strip() == DONE_SENTINEL:
                    break
                event = decode_event(data)
                yield event
                if event.finished:
                    _log.info("diagnosis stream finished")
                    return
        except requests.RequestException as e:
            raise RemoteServiceError(None, f"unexpected error while reading the response: {e}") from e
        finally:
            response.close()
        raise ProtocolError("stream ended without completion")


class DiagnosticClient:
    """Send captured terminal text to the completion endpoint in streaming mode."""

    def __init__(self, token: str, model: str = DEFAULT_MODEL,
                 url: str = COMPLETIONS_URL,
                 session: Optional[requests.Session] = None):
        self.token = token
        self.model = model
        self.url = url
        self.session = session or requests.Session()

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "Authorization": f"Bearer {self.token}",
        }

    def open_stream(self, capture_text: str, note: Optional[str] = None) -> DiagnosticStream:
        """Post the request and return the stream once the status is known good."""
        payload = build_payload(self.model, capture_text, note)
        _log.info("requesting diagnosis from %s (%d chars)", self.model, len(capture_text))
        try:
            response = self.session.post(
                self.url,
                headers=self.headers(),
                data=json.dumps(payload),
                stream=True,
            )
        except requests.RequestException as e:
            raise RemoteServiceError(None, f"unexpected error while contacting the service: {e}") from e

        if response.status_code >= 400:
            status = response.status_code
            response.close()
            _log.warning("completion endpoint answered %d", status)
            raise RemoteServiceError(status, status_message(status))
        return DiagnosticStream(response)

    def stream(self, capture_text: str, note: Optional[str] = None) -> Iterator[StreamEvent]:
        yield from self.open_stream(capture_text, note).events()
