"""Parser for the ``@@ACTION:<json>@@`` tag embedded in assistant replies.

Wire format: the ASCII marker ``@@ACTION:``, one JSON object, then ``@@``, at
the end of the reply (a short tail such as an emoji or a full stop is allowed)::

    Siap, sudah aku catat ya!
    @@ACTION:{"type": "ADD_WISHLIST", "data": {"item_name": "Sepatu", "estimated_cost": 450000, "priority": 1}}@@

:func:`extract_action` never raises on bad input. A tag that is present is
always removed from the text shown to the user; its payload only becomes an
instruction when it decodes and validates. Everything else is logged and
dropped so a broken tag can never take the chat reply down with it.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import ActionParseError
from .logging_setup import get_logger
from .models import ActionInstruction, AddTransaction, AddWishlist

TAG_MARKER = "@@ACTION:"
_TAIL_RE = re.compile(r"@@ACTION:(?P<payload>.*)@@(?P<tail>[^@\n]{0,16})", re.DOTALL)
_EARLIER_TAG_RE = re.compile(r"[ \t]*@@ACTION:.*?@@", re.DOTALL)

_logger = get_logger("wangku.actions")


class _TransactionEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["ADD_TRANSACTION"]
    data: AddTransaction


class _WishlistEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["ADD_WISHLIST"]
    data: AddWishlist


_ENVELOPE: TypeAdapter[_TransactionEnvelope | _WishlistEnvelope] = TypeAdapter(
    Annotated[_TransactionEnvelope | _WishlistEnvelope, Field(discriminator="type")]
)


class ActionExtraction(NamedTuple):
    """Result of scanning one reply."""

    text: str
    instruction: ActionInstruction | None
    tag_found: bool


def split_action_tag(reply: str) -> tuple[str, str | None]:
    """Split ``reply`` into ``(text_without_tag, raw_payload)``.

    Only the last marker is considered, and only when the tag closes the
    reply or is followed by a short tail (an emoji, a full stop). The tail
    stays in the text; any earlier complete tags are removed from it. Without
    such a tag the reply is returned unchanged with ``None``.
    """

    body = reply.rstrip()
    idx = body.rfind(TAG_MARKER)
    if idx == -1:
        return reply, None
    m = _TAIL_RE.fullmatch(body, idx)
    if m is None:
        return reply, None
    head = _EARLIER_TAG_RE.sub("", body[:idx]).rstrip()
    tail = m.group("tail").strip()
    if not tail:
        return head, m.group("payload")
    if not head:
        return tail, m.group("payload")
    sep = "" if tail[0] in ".,!?;:" else " "
    return f"{head}{sep}{tail}", m.group("payload")


def parse_action_payload(payload: str) -> ActionInstruction:
    """Decode and validate one tag payload.

    Raises :class:`~wangku.errors.ActionParseError` for invalid JSON, an
    unknown ``type``, or any field that fails validation.
    """

    try:
        raw: Any = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ActionParseError(f"action payload is not valid JSON: {e.msg}") from e
    try:
        envelope = _ENVELOPE.validate_python(raw)
    except ValidationError as e:
        fields = ",".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ActionParseError(f"action payload failed validation: {fields}") from e
    return envelope.data


def extract_action(reply: str) -> ActionExtraction:
    """Strip a trailing action tag from ``reply`` and parse it if possible."""

    text, payload = split_action_tag(reply)
    if payload is None:
        return ActionExtraction(reply, None, False)
    try:
        instruction = parse_action_payload(payload)
    except ActionParseError as e:
        _logger.warning("actions:dropped reason=%s payload_len=%d", e, len(payload))
        return ActionExtraction(text, None, True)
    _logger.info("actions:parsed action=%s", instruction.ACTION)
    return ActionExtraction(text, instruction, True)


__all__ = [
    "TAG_MARKER",
    "ActionExtraction",
    "extract_action",
    "parse_action_payload",
    "split_action_tag",
]
