"""Interactive terminal chat (prompt_toolkit-based).

Kept apart from :mod:`wangku.cli` so the loop can be driven by a pipe input in
tests. Slash commands:

- ``/reset`` clears the remote conversation,
- ``/history`` prints the stored log,
- ``/exit`` (or Ctrl-D) leaves the loop.
"""

from __future__ import annotations

import sys
from collections.abc import Callable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory

from .chat import ChatService, ChatTurn, TurnState
from .prompting import AI_NICKNAME

COMMANDS: tuple[str, ...] = ("/reset", "/history", "/exit")

RESET_OK = "Percakapan sudah di-reset."
RESET_FAILED = "Reset gagal. Coba lagi nanti."


def describe_turn(turn: ChatTurn) -> list[str]:
    """Lines to print for one turn: the reply, then a note about an applied action."""

    lines = [f"{AI_NICKNAME}: {turn.reply}"]
    if turn.state == TurnState.APPLIED and turn.applied is not None:
        lines.append(f"[aksi dicatat: {turn.instruction.ACTION} id={turn.applied.id}]")
    return lines


def action_failure(turn: ChatTurn) -> str | None:
    """Error text for a turn whose action could not be stored, else ``None``."""

    if turn.state != TurnState.APPLY_FAILED:
        return None
    return f"aksi gagal dicatat: {turn.action_error}"


def _print_err(line: str) -> None:
    print(line, file=sys.stderr)


def chat_loop(
    service: ChatService,
    *,
    session: PromptSession | None = None,
    echo: Callable[[str], None] = print,
    on_error: Callable[[str], None] = _print_err,
    message: str = "Kamu: ",
) -> int:
    """Read messages until ``/exit`` or EOF; return the number of turns sent.

    Replies go to ``echo``; a failed action is reported through ``on_error``.
    """

    sess: PromptSession = session or PromptSession(history=InMemoryHistory())
    completer = WordCompleter(list(COMMANDS), sentence=True)
    turns = 0
    while True:
        try:
            text = sess.prompt(message, completer=completer).strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not text:
            continue
        if text == "/exit":
            break
        if text == "/reset":
            echo(RESET_OK if service.reset_session() else RESET_FAILED)
            continue
        if text == "/history":
            for m in service.history():
                echo(f"[{m.timestamp:%Y-%m-%d %H:%M}] {m.role}: {m.text}")
            continue
        turn = service.send_message(text)
        for line in describe_turn(turn):
            echo(line)
        failure = action_failure(turn)
        if failure is not None:
            on_error(failure)
        turns += 1
    return turns


__all__ = ["COMMANDS", "action_failure", "chat_loop", "describe_turn"]
