"""Minimal JSON-over-HTTP helpers shared by the external service clients."""

from __future__ import annotations

import gzip
import json
import zlib
from typing import Any, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


class TransportError(RuntimeError):
    """Raised when an HTTP exchange fails or returns an unusable body."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def payload(self) -> Any:
        """Return the decoded JSON error body, if the service sent one."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except json.JSONDecodeError:
            return None


def get_json(
    url: str,
    *,
    params: Mapping[str, object] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float,
) -> Any:
    """Issue a GET request and decode the JSON response."""
    target = f"{url}?{urlencode(params)}" if params else url
    request_headers = {"Accept": "application/json", "Accept-Encoding": "gzip"}
    request_headers.update(headers or {})
    request = Request(target, headers=request_headers, method="GET")
    return _exchange(request, timeout=timeout)


def post_json(
    url: str,
    payload: Mapping[str, Any],
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float,
) -> Any:
    """Issue a POST request with a JSON body and decode the JSON response."""
    data = json.dumps(payload).encode("utf-8")
    request_headers = {"Content-Type": "application/json", "Accept": "application/json"}
    request_headers.update(headers or {})
    request = Request(url, data=data, headers=request_headers, method="POST")
    return _exchange(request, timeout=timeout)


def _exchange(request: Request, *, timeout: float) -> Any:
    try:
        with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
            encoding = _content_encoding(getattr(response, "headers", None))
    except HTTPError as exc:
        detail = _decode(exc.read(), _content_encoding(exc.headers))
        raise TransportError(
            f"HTTP {exc.code}: {detail.strip() or exc.reason}",
            status=exc.code,
            body=detail,
        ) from exc
    except URLError as exc:
        raise TransportError(f"Request to {_host(request)} failed: {exc.reason}") from exc
    except TimeoutError as exc:
        raise TransportError(f"Request to {_host(request)} timed out after {timeout}s") from exc
    except OSError as exc:
        raise TransportError(f"Request to {_host(request)} failed: {exc}") from exc

    try:
        return json.loads(_decode(raw, encoding))
    except (json.JSONDecodeError, OSError, EOFError, zlib.error) as exc:
        raise TransportError(f"{_host(request)} returned an unreadable body") from exc


def _decode(raw: bytes, encoding: str) -> str:
    # Stack Exchange compresses every response regardless of Accept-Encoding.
    encoding = (encoding or "").lower()
    if encoding == "gzip" or raw[:2] == b"\x1f\x8b":
        raw = gzip.decompress(raw)
    elif encoding == "deflate":
        raw = zlib.decompress(raw)
    return raw.decode("utf-8", errors="replace")


def _content_encoding(headers: Any) -> str:
    if headers is None:
        return ""
    return headers.get("Content-Encoding", "") or ""


def _host(request: Request) -> str:
    return request.host or request.full_url


__all__ = ["TransportError", "get_json", "post_json"]
