"""Tests for the streaming completion client."""

import io
import json

import pytest
import requests

from what_cli.errors import ProtocolError, RemoteServiceError
from what_cli.llm import (
    EVENT_CONTENT,
    EVENT_FINISH,
    EVENT_OPEN,
    STATUS_MESSAGES,
    SYSTEM_PROMPT,
    DiagnosticClient,
    DiagnosticStream,
    build_payload,
    decode_event,
    iter_sse_data,
    status_message,
)


def _chunk(content=None, finish_reason=None):
    delta = {} if content is None else {"content": content}
    return json.dumps({"choices": [{"delta": delta, "finish_reason": finish_reason}]})


def _sse(*payloads):
    lines = []
    for payload in payloads:
        lines.append(f"data: {payload}".encode("utf-8"))
        lines.append(b"")
    return lines


class FakeResponse:
    def __init__(self, status_code=200, lines=None, error=None):
        self.status_code = status_code
        self._lines = lines or []
        self._error = error
        self.closed = False

    def iter_lines(self):
        yield from self._lines
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _client(response=None, error=None):
    session = FakeSession(response, error)
    return DiagnosticClient("sk-test", model="gpt-4o-mini", url="https://example.test/v1",
                            session=session), session


class TestPayload:

    def test_payload_shape(self):
        payload = build_payload("gpt-4o", "error: boom", "it worked yesterday")

        assert payload["model"] == "gpt-4o"
        assert payload["stream"] is True
        assert payload["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert payload["messages"][1] == {
            "role": "user", "content": "error: boom\nit worked yesterday",
        }

    def test_payload_without_note(self):
        payload = build_payload("gpt-4o", "error: boom")
        assert payload["messages"][1]["content"] == "error: boom\n"

    def test_request_headers_and_body(self):
        client, session = _client(FakeResponse(lines=_sse(_chunk(finish_reason="stop"))))
        list(client.stream("error: boom"))

        url, kwargs = session.calls[0]
        assert url == "https://example.test/v1"
        assert kwargs["stream"] is True
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert json.loads(kwargs["data"])["model"] == "gpt-4o-mini"


class TestEventDecoding:

    def test_sse_groups_data_lines(self):
        lines = [": keep-alive", "event: message", "data: a", "data: b", "", "data: c"]
        assert list(iter_sse_data(lines)) == ["a\nb", "c"]

    def test_content_event(self):
        event = decode_event(_chunk("Try "))
        assert event.kind == EVENT_CONTENT
        assert event.text == "Try "

    def test_quotes_and_escapes_decoded(self):
        event = decode_event(_chunk('run "make"\nagain'))
        assert event.text == 'run "make"\nagain'

    def test_role_only_delta_has_no_text(self):
        payload = json.dumps({"choices": [{"delta": {"role": "assistant"}, "finish_reason": None}]})
        assert decode_event(payload).text == ""

    def test_finish_event(self):
        assert decode_event(_chunk(finish_reason="stop")).kind == EVENT_FINISH

    def test_malformed_json(self):
        with pytest.raises(ProtocolError):
            decode_event("{not json")

    def test_missing_choices(self):
        with pytest.raises(ProtocolError):
            decode_event(json.dumps({"id": "x"}))

    def test_missing_delta(self):
        with pytest.raises(ProtocolError):
            decode_event(json.dumps({"choices": [{"finish_reason": None}]}))


class TestStreaming:

    def test_fragments_until_stop(self):
        lines = _sse(
            _chunk("Try "), _chunk("restarting "), _chunk("the service"),
            _chunk(finish_reason="stop"), _chunk("ignored"),
        )
        response = FakeResponse(lines=lines)
        client, _ = _client(response)

        events = list(client.stream("log"))

        assert events[0].kind == EVENT_OPEN
        assert [e.text for e in events if e.kind == EVENT_CONTENT] == [
            "Try ", "restarting ", "the service",
        ]
        assert events[-1].kind == EVENT_FINISH
        assert response.closed is True

    def test_stream_without_stop_is_protocol_error(self):
        client, _ = _client(FakeResponse(lines=_sse(_chunk("partial"))))
        with pytest.raises(ProtocolError):
            list(client.stream("log"))

    def test_done_sentinel_before_stop_is_protocol_error(self):
        client, _ = _client(FakeResponse(lines=_sse(_chunk("partial"), "[DONE]")))
        with pytest.raises(ProtocolError):
            list(client.stream("log"))

    def test_malformed_payload_aborts(self):
        client, _ = _client(FakeResponse(lines=_sse(_chunk("a"), "garbage")))
        with pytest.raises(ProtocolError):
            list(client.stream("log"))

    def test_read_error_mid_stream(self):
        response = FakeResponse(lines=_sse(_chunk("a")),
                                error=requests.ConnectionError("reset by peer"))
        client, _ = _client(response)
        with pytest.raises(RemoteServiceError) as exc:
            list(client.stream("log"))
        assert exc.value.status is None

    def test_line_separator_inside_content(self):
        body = b"".join(
            b"data: " + payload.encode("utf-8") + b"\n\n"
            for payload in (_chunk("a\u2028b"), _chunk(finish_reason="stop"))
        )
        # json.dumps escapes non-ASCII; send the raw character as servers do
        body = body.replace(b"\\u2028", "\u2028".encode("utf-8"))
        response = requests.Response()
        response.status_code = 200
        response.raw = io.BytesIO(body)

        events = list(DiagnosticStream(response).events())

        assert [e.text for e in events if e.kind == EVENT_CONTENT] == ["a\u2028b"]
        assert events[-1].kind == EVENT_FINISH


class TestStatusMapping:

    @pytest.mark.parametrize("status, message", [
        (401, "Incorrect API key provided"),
        (403, "Country, region, or territory not supported"),
        (429, "Exceeded current quota or too many requests"),
        (500, "Server had an error while processing the request"),
        (503, "The engine is currently overloaded, try again later"),
    ])
    def test_mapped_status(self, status, message):
        response = FakeResponse(status_code=status)
        client, _ = _client(response)

        with pytest.raises(RemoteServiceError) as exc:
            client.open_stream("log")

        assert exc.value.status == status
        assert exc.value.message == message
        assert str(exc.value) == f"[{status}] {message}"
        assert response.closed is True

    def test_unlisted_status_falls_back(self):
        client, _ = _client(FakeResponse(status_code=418))

        with pytest.raises(RemoteServiceError) as exc:
            client.open_stream("log")

        assert exc.value.status == 418
        assert "418" in exc.value.message
        assert "unexpected error" in exc.value.message

    def test_status_table_is_complete(self):
        assert set(STATUS_MESSAGES) == {401, 403, 429, 500, 503}
        assert status_message(502) != status_message(503)

    def test_transport_failure(self):
        client, _ = _client(error=requests.ConnectionError("dns failure"))
        with pytest.raises(RemoteServiceError) as exc:
            client.open_stream("log")
        assert exc.value.status is None
