"""One-shot HTML financial summary from the summarizer endpoint.

The report has no action protocol and no side effects: build the prompt from a
fresh snapshot, send it, return the generated HTML with any markdown fence
removed. Every failure becomes a short HTML paragraph the page can render.
"""

from __future__ import annotations

from html import escape

from .errors import ConnectivityError, MalformedResponseError
from .logging_setup import get_logger
from .models import FinancialSnapshot
from .prompting import build_summary_prompt
from .resolver import extract_generated_text
from .settings import Settings
from .transport import GeminiClient

KEY_MISSING_HTML = (
    '<p class="text-sm">Silakan isi <strong>Gemini API Key</strong> di menu '
    '<a href="/profile" class="text-primary underline">Profile</a> '
    "untuk mengaktifkan AI Assistant.</p>"
)
HTTP_ERROR_HTML = (
    '<p class="text-destructive">Gagal menghubungi Gemini API. '
    "Coba lagi atau cek API Key-mu.</p>"
)

_logger = get_logger("wangku.summary")


def generate_financial_summary(
    settings: Settings,
    snapshot: FinancialSnapshot,
    *,
    client: GeminiClient | None = None,
) -> str:
    if not settings.has_summary_key:
        return KEY_MISSING_HTML

    client = client or GeminiClient(settings)
    prompt = build_summary_prompt(snapshot)
    try:
        response = client.generate_content(prompt)
        if response.status_code >= 400:
            _logger.error("summary:http_error status=%d", response.status_code)
            return HTTP_ERROR_HTML
        return extract_generated_text(response.body)
    except (ConnectivityError, MalformedResponseError) as e:
        _logger.error("summary:failed error=%s", e.__class__.__name__)
        return (
            '<p class="text-destructive">Terjadi kesalahan pada AI Service: '
            f"{escape(str(e))}</p>"
        )


__all__ = ["HTTP_ERROR_HTML", "KEY_MISSING_HTML", "generate_financial_summary"]
