"""Thin HTTP clients for the conversational and summarizer endpoints.

Both clients are non-streaming, single-attempt JSON-over-HTTP calls built on
``urllib``. The credential travels as the ``key`` query parameter.

Failure classes:

- No usable response (DNS, refused connection, reset, timeout, a body cut
  off mid-read) raises :class:`~wangku.errors.ConnectivityError` with the
  calling client's user-facing message.
- A body that is not JSON raises
  :class:`~wangku.errors.MalformedResponseError` carrying the raw bytes.
- Any JSON body is returned, whatever the HTTP status. The chat endpoint
  reports failures in-band (``status: false``) and the resolver decides what
  they mean.

No retries; the caller owns retry policy.
"""

from __future__ import annotations

import http.client
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from typing import Any, NamedTuple

from .errors import ConfigurationMissing, ConnectivityError, MalformedResponseError
from .logging_setup import get_logger
from .settings import Settings

CHAT_PATH = "/api/chat/logic-bell"
RESET_PATH = "/api/chat/logic-bell/reset"

CHAT_KEY_MISSING_MESSAGE = "Silakan isi TerMai API Key di menu Profile untuk menggunakan AI Chat."
SUMMARY_KEY_MISSING_MESSAGE = (
    "Silakan isi Gemini API Key di menu Profile untuk mengaktifkan AI Assistant."
)
CHAT_UNREACHABLE_MESSAGE = ConnectivityError.USER_MESSAGE
SUMMARY_UNREACHABLE_MESSAGE = (
    "Gagal terhubung ke Gemini API. Periksa koneksi internet dan coba lagi."
)

_NETWORK_ERRORS = (
    urllib.error.URLError,
    http.client.HTTPException,
    TimeoutError,
    ConnectionError,
)

_logger = get_logger("wangku.transport")


class JsonResponse(NamedTuple):
    status_code: int
    body: Any


def _redact(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    query = [
        (k, "***" if k == "key" else v)
        for k, v in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


def _decode(raw: bytes, *, url: str, status_code: int) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        _logger.error(
            "transport:malformed url=%s status=%d bytes=%d", _redact(url), status_code, len(raw)
        )
        preview = raw[:500].decode("utf-8", errors="replace")
        raise MalformedResponseError(
            f"Response from {_redact(url)} was not valid JSON (HTTP {status_code}): {preview}",
            raw=raw,
        ) from e


def _unreachable(e: BaseException, method: str, url: str, message: str) -> ConnectivityError:
    _logger.warning(
        "transport:unreachable method=%s url=%s error=%s reason=%s",
        method,
        _redact(url),
        e.__class__.__name__,
        getattr(e, "reason", e),
    )
    return ConnectivityError(message)


def request_json(
    url: str,
    *,
    method: str = "GET",
    payload: Mapping[str, Any] | None = None,
    timeout: float,
    unreachable_message: str,
) -> JsonResponse:
    """Perform one request and decode the JSON body.

    ``payload`` is sent as a JSON body when given. HTTP error statuses are not
    raised; their body is decoded like any other. A network failure raises
    :class:`~wangku.errors.ConnectivityError` carrying ``unreachable_message``.
    """

    data = None
    if payload is not None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    req = urllib.request.Request(url, data=data, method=method)
    req.add_header("Accept", "application/json")
    if data is not None:
        req.add_header("Content-Type", "application/json")

    t0 = time.perf_counter()
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status_code = resp.status
            raw = resp.read()
    except urllib.error.HTTPError as e:
        status_code = e.code
        try:
            raw = e.read()
        except _NETWORK_ERRORS as read_err:
            raise _unreachable(read_err, method, url, unreachable_message) from read_err
        finally:
            e.close()
    except _NETWORK_ERRORS as e:
        raise _unreachable(e, method, url, unreachable_message) from e

    _logger.debug(
        "transport:response method=%s url=%s status=%d latency_ms=%.2f",
        method,
        _redact(url),
        status_code,
        (time.perf_counter() - t0) * 1000.0,
    )
    return JsonResponse(status_code, _decode(raw, url=url, status_code=status_code))


def _with_query(base: str, path: str, **params: str) -> str:
    return f"{base.rstrip('/')}{path}?{urllib.parse.urlencode(params)}"


class TermaiClient:
    """Client for the conversational endpoint and its session reset."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _key(self) -> str:
        key = self._settings.termai_api_key
        if not key:
            raise ConfigurationMissing("termai_api_key", CHAT_KEY_MISSING_MESSAGE)
        return key

    def send(self, payload: Mapping[str, Any]) -> Any:
        """POST ``payload`` and return the decoded JSON body."""

        url = _with_query(self._settings.termai_base_url, CHAT_PATH, key=self._key())
        return request_json(
            url,
            method="POST",
            payload=payload,
            timeout=self._settings.request_timeout,
            unreachable_message=CHAT_UNREACHABLE_MESSAGE,
        ).body

    def reset(self, conversation_id: str) -> Any:
        """Clear server-side conversation state for ``conversation_id``."""

        url = _with_query(
            self._settings.termai_base_url, RESET_PATH, id=conversation_id, key=self._key()
        )
        return request_json(
            url,
            method="GET",
            timeout=self._settings.request_timeout,
            unreachable_message=CHAT_UNREACHABLE_MESSAGE,
        ).body


class GeminiClient:
    """Client for the ``generateContent`` summarizer endpoint."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def generate_content(self, prompt: str) -> JsonResponse:
        key = self._settings.gemini_api_key
        if not key:
            raise ConfigurationMissing("gemini_api_key", SUMMARY_KEY_MISSING_MESSAGE)
        path = f"/v1beta/models/{self._settings.gemini_model}:generateContent"
        url = _with_query(self._settings.gemini_base_url, path, key=key)
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        return request_json(
            url,
            method="POST",
            payload=body,
            timeout=self._settings.request_timeout,
            unreachable_message=SUMMARY_UNREACHABLE_MESSAGE,
        )


__all__ = [
    "CHAT_KEY_MISSING_MESSAGE",
    "CHAT_PATH",
    "CHAT_UNREACHABLE_MESSAGE",
    "RESET_PATH",
    "SUMMARY_KEY_MISSING_MESSAGE",
    "SUMMARY_UNREACHABLE_MESSAGE",
    "GeminiClient",
    "JsonResponse",
    "TermaiClient",
    "request_json",
]
