"""Turn loosely-shaped endpoint responses into a definite outcome.

The conversational endpoint answers with JSON whose reply may sit under one of
several keys. :func:`resolve_chat_response` maps it onto exactly one of:

- :class:`ReplyContent`: success with a reply string.
- :class:`ReplyEmpty`: success, but the assistant produced nothing.
- :class:`ReplyFailure`: the endpoint said ``status: false``.

The search order is :data:`REPLY_FIELD_PRIORITY`; extend that tuple rather than
special-casing fields elsewhere.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import MalformedResponseError

# (container, key): container "data" is the nested reply object, None is top level.
REPLY_FIELD_PRIORITY: tuple[tuple[str | None, str], ...] = (
    ("data", "msg"),
    ("data", "text"),
    ("data", "content"),
    (None, "msg"),
    (None, "text"),
    (None, "reply"),
    (None, "message"),
    (None, "result"),
    (None, "answer"),
)

ERROR_FIELD_PRIORITY: tuple[str, ...] = ("msg", "message", "error")

_NESTED_REPLY_KEYS = frozenset(k for c, k in REPLY_FIELD_PRIORITY if c == "data")

EMPTY_REPLY_MESSAGE = (
    "Wangi sedang berpikir, tapi tidak ada jawaban. "
    "Coba klik tombol Reset di pojok kanan atas layar chat ya."
)
FAILURE_PREFIX = "Gagal: "


@dataclass(frozen=True, slots=True)
class ReplyContent:
    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class ReplyEmpty:
    def render(self) -> str:
        return EMPTY_REPLY_MESSAGE


@dataclass(frozen=True, slots=True)
class ReplyFailure:
    detail: str

    def render(self) -> str:
        return f"{FAILURE_PREFIX}{self.detail}"


type ChatReply = ReplyContent | ReplyEmpty | ReplyFailure


def _as_text(value: Any) -> str | None:
    """Return a non-empty display string for ``value`` or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, ensure_ascii=False) if value else None
    return str(value)


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _failure_detail(response: Mapping[str, Any]) -> str:
    for key in ERROR_FIELD_PRIORITY:
        text = _as_text(response.get(key))
        if text is not None:
            return text
    return _dump(response)


def resolve_chat_response(response: Any) -> ChatReply:
    """Classify a decoded chat response.

    Only a top-level ``status`` that is exactly ``True`` counts as success.
    Raises :class:`~wangku.errors.MalformedResponseError` when ``response``
    is not a JSON object.
    """

    if not isinstance(response, Mapping):
        raise MalformedResponseError(
            f"Expected a JSON object from the chat endpoint, got: {_dump(response)}",
            raw=_dump(response),
        )

    if response.get("status") is not True:
        return ReplyFailure(_failure_detail(response))

    data = response.get("data")
    nested: Mapping[str, Any] = data if isinstance(data, Mapping) else {}
    for container, key in REPLY_FIELD_PRIORITY:
        source = nested if container == "data" else response
        text = _as_text(source.get(key))
        if text is not None:
            return ReplyContent(text)

    # A reply object carrying only empty searched fields is still an empty reply;
    # one with unknown keys is shown rather than hidden.
    extra = [v for k, v in nested.items() if k not in _NESTED_REPLY_KEYS]
    if any(_as_text(v) is not None for v in extra):
        return ReplyContent(_dump(nested))
    return ReplyEmpty()


_FENCE_OPEN = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove one surrounding markdown code fence (```html ... ```), if present."""

    stripped = _FENCE_OPEN.sub("", text, count=1)
    if stripped != text:
        stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped.strip()


def extract_generated_text(response: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` with any code fence removed.

    Missing pieces yield an empty string; a non-object body raises
    :class:`~wangku.errors.MalformedResponseError`.
    """

    if not isinstance(response, Mapping):
        raise MalformedResponseError(
            f"Expected a JSON object from the summarizer, got: {_dump(response)}",
            raw=_dump(response),
        )
    try:
        text = response["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(text, str):
        return ""
    return strip_code_fence(text)


__all__ = [
    "EMPTY_REPLY_MESSAGE",
    "ERROR_FIELD_PRIORITY",
    "FAILURE_PREFIX",
    "REPLY_FIELD_PRIORITY",
    "ChatReply",
    "ReplyContent",
    "ReplyEmpty",
    "ReplyFailure",
    "extract_generated_text",
    "resolve_chat_response",
    "strip_code_fence",
]
