# ruff: noqa: I001
"""CLI for the ``wangku`` package.

Each subcommand is a thin Typer wrapper around a ``cmd_*`` handler that returns
a process exit code, so handlers can be called (and tested) directly. The root
callback loads ``.env`` from the working directory without overriding existing
variables and configures logging once. Settings are loaded per command through
:func:`wangku.settings.load_settings`.

The owner of the records defaults to ``WANGKU_USER_ID`` (or ``local``); pass
``--owner`` to act for another user.
"""

from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .errors import StoreError
from .formatting import format_currency, format_date
from .ledger import Ledger
from .logging_setup import configure_logging
from .settings import Settings, load_settings
from .store import RecordStore


def _err(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def _default_owner() -> str:
    return os.getenv("WANGKU_USER_ID") or "local"


def _open(owner: str | None, database_url: str | None) -> tuple[Settings, Ledger]:
    settings = load_settings()
    url = database_url or settings.database_url
    return settings, Ledger(RecordStore(owner or _default_owner(), database_url=url))


# ---- Command handlers --------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create all tables directly from the ORM metadata (development databases)."""

    from db import Base
    from db.client import get_engine

    try:
        engine = get_engine(database_url=database_url or load_settings().database_url)
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        _err(f"failed to initialize database: {e}")
        return 1
    print("Database tables are ready.")
    return 0


def cmd_add_transaction(
    *,
    title: str,
    amount: str,
    kind: str,
    on: str | None,
    status: str,
    owner: str | None = None,
    database_url: str | None = None,
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        tx = ledger.add_transaction(
            title=title, amount=amount, kind=kind, on=on or date.today(), status=status
        )
    except ValueError as e:
        _err(str(e))
        return 2
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"{tx.id}\t{tx.kind}\t{tx.status}\t{format_currency(tx.amount)}")
    return 0


def cmd_confirm_transaction(
    transaction_id: str, *, owner: str | None = None, database_url: str | None = None
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        tx = ledger.confirm_transaction(transaction_id)
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"{tx.id}\t{tx.status}\tsaldo={format_currency(ledger.ensure_profile().current_balance)}")
    return 0


def cmd_delete_transaction(
    transaction_id: str, *, owner: str | None = None, database_url: str | None = None
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        ledger.delete_transaction(transaction_id)
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"Deleted {transaction_id}")
    return 0


def cmd_list_transactions(
    *, status: str | None = None, owner: str | None = None, database_url: str | None = None
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        rows = ledger.list_transactions(status=status)
    except StoreError as e:
        _err(str(e))
        return 1
    for t in rows:
        print(
            f"{t.id}\t{format_date(t.date)}\t{t.kind}\t{t.status}\t"
            f"{format_currency(t.amount)}\t{t.title}"
        )
    return 0


def cmd_add_wishlist(
    *,
    item_name: str,
    estimated_cost: str,
    priority: int,
    owner: str | None = None,
    database_url: str | None = None,
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        item = ledger.add_wishlist_item(
            item_name=item_name, estimated_cost=estimated_cost, priority=priority
        )
    except ValueError as e:
        _err(str(e))
        return 2
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"{item.id}\t{item.priority}\t{format_currency(item.estimated_cost)}\t{item.item_name}")
    return 0


def cmd_list_wishlist(
    *, include_completed: bool = False, owner: str | None = None, database_url: str | None = None
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        items = ledger.list_wishlist(include_completed=include_completed)
    except StoreError as e:
        _err(str(e))
        return 1
    for w in items:
        print(
            f"{w.id}\t{w.priority}\t{w.status}\t{format_currency(w.estimated_cost)}\t{w.item_name}"
        )
    return 0


def cmd_buy_wishlist(
    item_id: str,
    *,
    on: str | None = None,
    owner: str | None = None,
    database_url: str | None = None,
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        item, expense = ledger.buy_wishlist_item(
            item_id, on=date.fromisoformat(on) if on else None
        )
    except ValueError as e:
        _err(f"invalid date: {e}")
        return 2
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"{item.id}\tcompleted\texpense={expense.id}\t{format_currency(expense.amount)}")
    return 0


def cmd_set_balance(
    amount: str, *, owner: str | None = None, database_url: str | None = None
) -> int:
    _, ledger = _open(owner, database_url)
    try:
        profile = ledger.set_opening_balance(amount)
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"saldo={format_currency(profile.current_balance)}")
    return 0


def cmd_set_name(name: str, *, owner: str | None = None, database_url: str | None = None) -> int:
    _, ledger = _open(owner, database_url)
    try:
        profile = ledger.set_name(name)
    except StoreError as e:
        _err(str(e))
        return 1
    print(f"name={profile.name}")
    return 0


def cmd_balance(*, owner: str | None = None, database_url: str | None = None) -> int:
    _, ledger = _open(owner, database_url)
    try:
        balance = ledger.recompute_balance()
    except StoreError as e:
        _err(str(e))
        return 1
    print(format_currency(balance))
    return 0


def cmd_set_key(*, termai: str | None, gemini: str | None) -> int:
    from .settings import save_settings

    if termai is None and gemini is None:
        _err("provide --termai and/or --gemini")
        return 2
    settings = load_settings().with_keys(termai_api_key=termai, gemini_api_key=gemini)
    path = save_settings(settings)
    print(f"Saved keys to {path}")
    return 0


def cmd_chat(
    message: str | None,
    *,
    email: str | None = None,
    owner: str | None = None,
    database_url: str | None = None,
) -> int:
    from .chat import ChatService
    from .term_ui import action_failure, chat_loop, describe_turn

    settings, ledger = _open(owner, database_url)
    service = ChatService(settings, ledger, account_email=email)
    if message is None:
        chat_loop(service, on_error=_err)
        return 0
    turn = service.send_message(message)
    for line in describe_turn(turn):
        print(line)
    failure = action_failure(turn)
    if failure is not None:
        _err(failure)
    return 0


def cmd_reset_chat(*, owner: str | None = None, database_url: str | None = None) -> int:
    from .chat import ChatService

    settings, ledger = _open(owner, database_url)
    if not ChatService(settings, ledger).reset_session():
        _err("chat reset failed (missing TerMai key or server unavailable)")
        return 1
    print("Chat session reset.")
    return 0


def cmd_history(*, owner: str | None = None, database_url: str | None = None) -> int:
    from .chat import ChatService

    settings, ledger = _open(owner, database_url)
    for m in ChatService(settings, ledger).history():
        print(f"{m.timestamp:%Y-%m-%d %H:%M:%S}\t{m.role}\t{m.text}")
    return 0


def cmd_summary(*, owner: str | None = None, database_url: str | None = None) -> int:
    from .summary import generate_financial_summary

    settings, ledger = _open(owner, database_url)
    try:
        snapshot = ledger.snapshot(limit=settings.context_limit)
    except StoreError as e:
        _err(str(e))
        return 1
    print(generate_financial_summary(settings, snapshot))
    return 0


# ---- Typer wiring -------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "WangKu personal finance: record transactions and wishlist items, and chat "
        "with the Wangi assistant. Loads settings from a local .env before running."
    ),
)

# Module-level option objects (no calls in parameter defaults).
OWNER_OPTION: OptionInfo = typer.Option(
    None, "--owner", help="Owner user id (defaults to WANGKU_USER_ID or 'local')."
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


@app.command("init-db")
def init_db_cmd(database_url: str | None = DATABASE_URL_OPTION) -> None:
    """Create tables from the ORM models (use Alembic for managed databases)."""
    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.command("add-transaction")
def add_transaction_cmd(
    title: str = typer.Option(..., help="What the money was for."),
    amount: str = typer.Option(..., help="Non-negative amount, e.g. 150000."),
    kind: str = typer.Option(..., "--kind", help="income or expense."),
    on: str | None = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)."),
    status: str = typer.Option("pending", help="pending or completed."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Record a transaction."""
    raise typer.Exit(
        cmd_add_transaction(
            title=title,
            amount=amount,
            kind=kind,
            on=on,
            status=status,
            owner=owner,
            database_url=database_url,
        )
    )


@app.command("confirm-transaction")
def confirm_transaction_cmd(
    transaction_id: str,
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Mark a pending transaction as completed."""
    raise typer.Exit(
        cmd_confirm_transaction(transaction_id, owner=owner, database_url=database_url)
    )


@app.command("delete-transaction")
def delete_transaction_cmd(
    transaction_id: str,
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete a transaction."""
    raise typer.Exit(cmd_delete_transaction(transaction_id, owner=owner, database_url=database_url))


@app.command("list-transactions")
def list_transactions_cmd(
    status: str | None = typer.Option(None, help="Only pending or completed."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List transactions by date."""
    raise typer.Exit(cmd_list_transactions(status=status, owner=owner, database_url=database_url))


@app.command("add-wishlist")
def add_wishlist_cmd(
    name: str = typer.Option(..., "--name", help="Item name."),
    cost: str = typer.Option(..., "--cost", help="Estimated cost."),
    priority: int = typer.Option(1, help="1 is the highest priority."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Add a wishlist item."""
    raise typer.Exit(
        cmd_add_wishlist(
            item_name=name,
            estimated_cost=cost,
            priority=priority,
            owner=owner,
            database_url=database_url,
        )
    )


@app.command("list-wishlist")
def list_wishlist_cmd(
    include_completed: bool = typer.Option(False, "--all", help="Include bought items."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List wishlist items by priority."""
    raise typer.Exit(
        cmd_list_wishlist(
            include_completed=include_completed, owner=owner, database_url=database_url
        )
    )


@app.command("buy-wishlist")
def buy_wishlist_cmd(
    item_id: str,
    on: str | None = typer.Option(None, "--date", help="Purchase date (default: today)."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Mark a wishlist item bought and record the expense."""
    raise typer.Exit(cmd_buy_wishlist(item_id, on=on, owner=owner, database_url=database_url))


@app.command("set-balance")
def set_balance_cmd(
    amount: str,
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Set the opening balance and recompute the current balance."""
    raise typer.Exit(cmd_set_balance(amount, owner=owner, database_url=database_url))


@app.command("set-name")
def set_name_cmd(
    name: str,
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Set the display name the assistant uses."""
    raise typer.Exit(cmd_set_name(name, owner=owner, database_url=database_url))


@app.command("balance")
def balance_cmd(
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Recompute and print the current balance."""
    raise typer.Exit(cmd_balance(owner=owner, database_url=database_url))


@app.command("set-key")
def set_key_cmd(
    termai: str | None = typer.Option(None, help="TerMai chat API key."),
    gemini: str | None = typer.Option(None, help="Gemini summary API key."),
) -> None:
    """Save API keys to the user settings file."""
    raise typer.Exit(cmd_set_key(termai=termai, gemini=gemini))


@app.command("chat")
def chat_cmd(
    message: Annotated[str | None, typer.Argument(help="Send one message and exit.")] = None,
    email: str | None = typer.Option(None, help="Account email (fallback display name)."),
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Chat with Wangi (interactive when no message is given)."""
    raise typer.Exit(cmd_chat(message, email=email, owner=owner, database_url=database_url))


@app.command("reset-chat")
def reset_chat_cmd(
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Clear the remote conversation state."""
    raise typer.Exit(cmd_reset_chat(owner=owner, database_url=database_url))


@app.command("history")
def history_cmd(
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print the stored chat log, oldest first."""
    raise typer.Exit(cmd_history(owner=owner, database_url=database_url))


@app.command("summary")
def summary_cmd(
    owner: str | None = OWNER_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print the AI financial summary (HTML)."""
    raise typer.Exit(cmd_summary(owner=owner, database_url=database_url))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
