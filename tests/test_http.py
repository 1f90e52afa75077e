"""Tests for the shared JSON-over-HTTP helpers."""

from __future__ import annotations

import gzip
import io
import json
from email.message import Message
from urllib.error import HTTPError, URLError

import pytest

from second_opinion import http
from second_opinion.http import TransportError, get_json


class FakeResponse:
    def __init__(self, raw: bytes, headers: dict[str, str] | None = None) -> None:
        self._raw = raw
        self.headers = headers or {}

    def read(self) -> bytes:
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_get_json_encodes_query_parameters(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout):
        captured["url"] = request.full_url
        captured["method"] = request.get_method()
        return FakeResponse(b'{"items": []}')

    monkeypatch.setattr(http, "urlopen", fake_urlopen)

    payload = get_json("https://api.test/search", params={"q": "a b", "site": "so"}, timeout=1.0)

    assert payload == {"items": []}
    assert captured == {"url": "https://api.test/search?q=a+b&site=so", "method": "GET"}


def test_get_json_decompresses_gzip_bodies(monkeypatch: pytest.MonkeyPatch) -> None:
    compressed = gzip.compress(json.dumps({"items": [1]}).encode("utf-8"))
    monkeypatch.setattr(
        http, "urlopen", lambda request, timeout: FakeResponse(compressed, {"Content-Encoding": "gzip"})
    )

    assert get_json("https://api.test", timeout=1.0) == {"items": [1]}


def test_get_json_detects_gzip_without_header(monkeypatch: pytest.MonkeyPatch) -> None:
    compressed = gzip.compress(b'{"ok": true}')
    monkeypatch.setattr(http, "urlopen", lambda request, timeout: FakeResponse(compressed))

    assert get_json("https://api.test", timeout=1.0) == {"ok": True}


def test_http_errors_carry_status_and_body(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_urlopen(request, timeout):
        raise HTTPError(request.full_url, 400, "Bad Request", Message(), io.BytesIO(b'{"error": "bad"}'))

    monkeypatch.setattr(http, "urlopen", failing_urlopen)

    with pytest.raises(TransportError) as excinfo:
        get_json("https://api.test", timeout=1.0)

    assert excinfo.value.status == 400
    assert excinfo.value.payload() == {"error": "bad"}
    assert str(excinfo.value).startswith("HTTP 400")


def test_network_errors_become_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_urlopen(request, timeout):
        raise URLError("Name or service not known")

    monkeypatch.setattr(http, "urlopen", failing_urlopen)

    with pytest.raises(TransportError, match="api.test"):
        get_json("https://api.test/path", timeout=1.0)


def test_unreadable_body_becomes_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(http, "urlopen", lambda request, timeout: FakeResponse(b"<html>oops</html>"))

    with pytest.raises(TransportError, match="unreadable"):
        get_json("https://api.test", timeout=1.0)
