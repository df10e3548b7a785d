"""One chat turn with the assistant, end to end.

Flow: snapshot the ledger → build the payload → send → resolve the reply →
strip and parse an action tag → apply it. Each step is a separate module; this
one only sequences them and decides what the user sees.

Turn states::

    IDLE → SENDING → RESOLVING → REPLYING → EXTRACTING_ACTION → NO_ACTION
                                                              → APPLYING_ACTION → APPLIED
                                                                                → APPLY_FAILED
    IDLE → CONFIG_MISSING
    SENDING → TRANSPORT_FAILED
    SENDING/RESOLVING → MALFORMED_RESPONSE

``REPLYING`` is terminal for failure and empty replies: only a content reply
is scanned for an action. ``APPLY_FAILED`` still delivers the reply; the store
error is returned on the turn for the caller to report like any manual edit.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .actions import extract_action
from .applicator import apply_action
from .errors import ConnectivityError, MalformedResponseError, StoreError
from .ledger import Ledger
from .logging_setup import get_logger
from .models import ActionInstruction, ChatMessage, FinancialSnapshot, Transaction, WishlistItem
from .prompting import build_chat_payload, resolve_display_name
from .resolver import ChatReply, ReplyContent, resolve_chat_response
from .settings import Settings
from .transport import CHAT_KEY_MISSING_MESSAGE, TermaiClient

MALFORMED_REPLY_PREFIX = "Terjadi kesalahan respon dari AI: "

_logger = get_logger("wangku.chat")


class TurnState(StrEnum):
    IDLE = "IDLE"
    SENDING = "SENDING"
    RESOLVING = "RESOLVING"
    REPLYING = "REPLYING"
    EXTRACTING_ACTION = "EXTRACTING_ACTION"
    NO_ACTION = "NO_ACTION"
    APPLYING_ACTION = "APPLYING_ACTION"
    APPLIED = "APPLIED"
    APPLY_FAILED = "APPLY_FAILED"
    TRANSPORT_FAILED = "TRANSPORT_FAILED"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CONFIG_MISSING = "CONFIG_MISSING"


@dataclass(frozen=True, slots=True)
class ChatTurn:
    """What one turn produced. ``reply`` is exactly what the user should see."""

    reply: str
    state: TurnState
    trail: tuple[TurnState, ...]
    outcome: ChatReply | None = None
    instruction: ActionInstruction | None = None
    applied: Transaction | WishlistItem | None = None
    action_error: StoreError | None = None


def conversation_id_for(owner_id: str) -> str:
    """Stable per-user conversation id used by the remote session."""

    return f"wangku-{owner_id}"


class ChatService:
    def __init__(
        self,
        settings: Settings,
        ledger: Ledger,
        *,
        client: TermaiClient | None = None,
        account_email: str | None = None,
    ) -> None:
        self._settings = settings
        self._ledger = ledger
        self._client = client or TermaiClient(settings)
        self._account_email = account_email

    @property
    def conversation_id(self) -> str:
        return conversation_id_for(self._ledger.store.owner_id)

    # ---- history ----------------------------------------------------------

    def history(self) -> list[ChatMessage]:
        """Stored messages, oldest first. Read failures yield an empty list."""

        try:
            return self._ledger.store.chat_messages.list(order_by="timestamp", ascending=True)
        except StoreError as e:
            _logger.warning("chat:history_unavailable error=%s", e)
            return []

    def save_message(self, role: str, text: str) -> ChatMessage | None:
        """Append one message to the log; a failed write is logged, not raised."""

        try:
            return self._ledger.store.chat_messages.insert({"role": role, "text": text})
        except StoreError as e:
            _logger.warning("chat:history_write_failed role=%s error=%s", role, e)
            return None

    # ---- session ----------------------------------------------------------

    def reset_session(self) -> bool:
        """Ask the endpoint to forget this conversation. Never raises."""

        if not self._settings.has_chat_key:
            return False
        try:
            body = self._client.reset(self.conversation_id)
        except (ConnectivityError, MalformedResponseError) as e:
            _logger.warning("chat:reset_failed error=%s", e.__class__.__name__)
            return False
        ok = isinstance(body, dict) and body.get("status") is True
        _logger.info("chat:reset conversation=%s ok=%s", self.conversation_id, ok)
        return ok

    # ---- turn -------------------------------------------------------------

    def _snapshot(self) -> FinancialSnapshot | None:
        try:
            return self._ledger.snapshot(limit=self._settings.context_limit)
        except StoreError as e:
            _logger.warning("chat:context_unavailable error=%s", e)
            return None

    def _sender_name(self) -> str:
        try:
            name = self._ledger.ensure_profile().name
        except StoreError as e:
            _logger.warning("chat:profile_unavailable error=%s", e)
            name = None
        return resolve_display_name(name, self._account_email)

    def send_message(self, text: str, *, today: date | None = None) -> ChatTurn:
        """Run one turn for ``text`` and persist both sides of the exchange."""

        turn = self._run_turn(text, today=today)
        self.save_message("user", text)
        self.save_message("assistant", turn.reply)
        return turn

    def _run_turn(self, text: str, *, today: date | None) -> ChatTurn:
        trail: list[TurnState] = [TurnState.IDLE]
        t0 = time.perf_counter()

        def done(state: TurnState, reply: str, **extra) -> ChatTurn:
            trail.append(state)
            _logger.info(
                "chat:turn_done state=%s latency_ms=%.2f",
                state,
                (time.perf_counter() - t0) * 1000.0,
            )
            return ChatTurn(reply=reply, state=state, trail=tuple(trail), **extra)

        if not self._settings.has_chat_key:
            return done(TurnState.CONFIG_MISSING, CHAT_KEY_MISSING_MESSAGE)

        payload = build_chat_payload(
            text,
            conversation_id=self.conversation_id,
            sender_name=self._sender_name(),
            snapshot=self._snapshot(),
            today=today,
        )

        trail.append(TurnState.SENDING)
        try:
            body = self._client.send(payload)
        except ConnectivityError as e:
            return done(TurnState.TRANSPORT_FAILED, str(e) or ConnectivityError.USER_MESSAGE)
        except MalformedResponseError as e:
            return done(TurnState.MALFORMED_RESPONSE, f"{MALFORMED_REPLY_PREFIX}{e}")

        trail.append(TurnState.RESOLVING)
        try:
            outcome = resolve_chat_response(body)
        except MalformedResponseError as e:
            return done(TurnState.MALFORMED_RESPONSE, f"{MALFORMED_REPLY_PREFIX}{e}")

        if not isinstance(outcome, ReplyContent):
            _logger.info("chat:no_content outcome=%s", type(outcome).__name__)
            return done(TurnState.REPLYING, outcome.render(), outcome=outcome)

        trail.extend([TurnState.REPLYING, TurnState.EXTRACTING_ACTION])
        extraction = extract_action(outcome.text)
        if extraction.instruction is None:
            return done(TurnState.NO_ACTION, extraction.text, outcome=outcome)

        trail.append(TurnState.APPLYING_ACTION)
        try:
            record = apply_action(self._ledger, extraction.instruction)
        except StoreError as e:
            _logger.error("chat:action_failed action=%s error=%s", extraction.instruction.ACTION, e)
            return done(
                TurnState.APPLY_FAILED,
                extraction.text,
                outcome=outcome,
                instruction=extraction.instruction,
                action_error=e,
            )
        return done(
            TurnState.APPLIED,
            extraction.text,
            outcome=outcome,
            instruction=extraction.instruction,
            applied=record,
        )


__all__ = [
    "MALFORMED_REPLY_PREFIX",
    "ChatService",
    "ChatTurn",
    "TurnState",
    "conversation_id_for",
]
