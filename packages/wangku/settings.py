"""Explicit configuration object for ``wangku`` components.

:class:`Settings` is loaded once at process start by :func:`load_settings` and
handed to every component that needs it. Nothing in the package reads
credentials from the environment after that point. Editing a key produces a new
object (:meth:`Settings.with_keys`), which callers persist with
:func:`save_settings` and then pass on.

Precedence, lowest to highest: defaults, the JSON settings file, environment
variables. The settings file only ever stores values the user explicitly saved
(API keys), mirroring a per-user key store.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .logging_setup import get_logger

SETTINGS_FILE_ENV = "WANGKU_SETTINGS_FILE"
DEFAULT_SETTINGS_FILE = Path.home() / ".config" / "wangku" / "settings.json"

# env var -> field. Later entries win when several are set for one field.
_ENV_FIELDS: tuple[tuple[str, str], ...] = (
    ("GEMINI_API_KEY", "gemini_api_key"),
    ("WANGKU_GEMINI_API_KEY", "gemini_api_key"),
    ("WANGKU_TERMAI_API_KEY", "termai_api_key"),
    ("WANGKU_TERMAI_BASE_URL", "termai_base_url"),
    ("WANGKU_GEMINI_BASE_URL", "gemini_base_url"),
    ("WANGKU_GEMINI_MODEL", "gemini_model"),
    ("WANGKU_REQUEST_TIMEOUT", "request_timeout"),
    ("WANGKU_CONTEXT_LIMIT", "context_limit"),
    ("DATABASE_URL", "database_url"),
)

# Only these keys are written back to the settings file.
_PERSISTED_FIELDS: tuple[str, ...] = ("termai_api_key", "gemini_api_key")

_logger = get_logger("wangku.settings")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    termai_api_key: str = ""
    gemini_api_key: str = ""
    termai_base_url: str = "https://api.termai.cc"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_model: str = "gemini-2.5-flash-lite"
    request_timeout: float = Field(default=60.0, gt=0)
    context_limit: int = Field(default=10, ge=1)
    database_url: str | None = None

    @property
    def has_chat_key(self) -> bool:
        return bool(self.termai_api_key)

    @property
    def has_summary_key(self) -> bool:
        return bool(self.gemini_api_key)

    def with_keys(
        self, *, termai_api_key: str | None = None, gemini_api_key: str | None = None
    ) -> Settings:
        """Return a copy with the given keys replaced (``None`` keeps the current one)."""

        updates: dict[str, Any] = {}
        if termai_api_key is not None:
            updates["termai_api_key"] = termai_api_key.strip()
        if gemini_api_key is not None:
            updates["gemini_api_key"] = gemini_api_key.strip()
        return self.model_copy(update=updates)


def settings_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    raw = env.get(SETTINGS_FILE_ENV)
    return Path(raw).expanduser() if raw else DEFAULT_SETTINGS_FILE


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _logger.warning("settings:file_unreadable path=%s error=%s", path, e.__class__.__name__)
        return {}
    if not isinstance(data, dict):
        _logger.warning("settings:file_not_object path=%s", path)
        return {}
    return {k: v for k, v in data.items() if k in _PERSISTED_FIELDS}


def load_settings(
    *, path: Path | None = None, env: Mapping[str, str] | None = None
) -> Settings:
    """Build :class:`Settings` from the settings file and the environment.

    Raises ``ValueError`` (pydantic ``ValidationError``) when an environment
    value cannot be parsed, e.g. a non-numeric ``WANGKU_REQUEST_TIMEOUT``.
    """

    env = os.environ if env is None else env
    values: dict[str, Any] = _read_settings_file(path or settings_path(env))
    for env_name, field_name in _ENV_FIELDS:
        raw = env.get(env_name)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()
    try:
        return Settings.model_validate(values)
    except ValidationError:
        _logger.error("settings:invalid fields=%s", ",".join(sorted(values)))
        raise


def save_settings(settings: Settings, *, path: Path | None = None) -> Path:
    """Write the user-editable keys to the settings file and return its path."""

    target = path or settings_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {k: getattr(settings, k) for k in _PERSISTED_FIELDS}
    target.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    try:
        target.chmod(0o600)
    except OSError:  # pragma: no cover - platform dependent
        _logger.debug("settings:chmod_failed path=%s", target)
    return target


__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "SETTINGS_FILE_ENV",
    "Settings",
    "load_settings",
    "save_settings",
    "settings_path",
]
