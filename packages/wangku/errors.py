"""Exception taxonomy for ``wangku``.

Transport and store failures are raised as the typed errors below. In-band
failures of the chat endpoint are not exceptions; they are values of the
resolver's reply union (see :mod:`wangku.resolver`).
"""

from __future__ import annotations


class WangkuError(Exception):
    """Base class for all package errors."""


class ConfigurationMissing(WangkuError):
    """A credential required by a remote endpoint is not configured."""

    def __init__(self, credential: str, message: str) -> None:
        super().__init__(message)
        self.credential = credential
        self.message = message


class ConnectivityError(WangkuError):
    """DNS, connection or timeout failure before any response arrived."""

    USER_MESSAGE = (
        "Gagal terhubung ke server TerMai. Pastikan API Key valid dan koneksi internet stabil."
    )


class MalformedResponseError(WangkuError, ValueError):
    """The remote body was not JSON, or not the expected top-level shape."""

    def __init__(self, message: str, *, raw: str | bytes | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class ActionParseError(WangkuError, ValueError):
    """An ``@@ACTION:...@@`` payload could not be decoded or validated."""


class StoreError(WangkuError):
    """A record-store operation failed."""


class RecordNotFound(StoreError):
    """No record with the given id exists for the current owner."""


class InvalidTransition(StoreError):
    """A status change that the ledger does not allow (e.g. completed -> pending)."""


__all__ = [
    "ActionParseError",
    "ConfigurationMissing",
    "ConnectivityError",
    "InvalidTransition",
    "MalformedResponseError",
    "RecordNotFound",
    "StoreError",
    "WangkuError",
]
