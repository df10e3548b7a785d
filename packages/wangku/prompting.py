"""Prompt construction for the chat assistant and the summary report.

This module builds:
- The persona block describing the assistant ("Wangi").
- The action grammar that tells the model how to request a store mutation
  with a trailing ``@@ACTION:<json>@@`` tag. The grammar text is a protocol
  contract with :mod:`wangku.actions`; keep the two in sync.
- The complete JSON body for the conversational endpoint.
- The single-string prompt for the summarizer endpoint.

Nothing here performs I/O. Callers must check credentials before building a
payload.
"""

from __future__ import annotations

from datetime import date
from typing import TypedDict

from .context import CHAT_SECTIONS, SUMMARY_SECTIONS, build_context_block
from .models import FinancialSnapshot

AI_FULL_NAME = "WangKu AI"
AI_NICKNAME = "Wangi"
AI_ROLE = "Asisten Keuangan"
MESSAGE_TYPE = "text"
FALLBACK_DISPLAY_NAME = "Pengguna"

ACTION_GRAMMAR = """### MANDATORY ACTION RULES ###
If the user asks to record/add/save a transaction or wishlist, you MUST append a tag at the very END of your response.
Format:
@@ACTION:{"type": "ADD_TRANSACTION", "data": {"title": "...", "amount": 0, "type": "income", "date": "YYYY-MM-DD", "status": "completed"}}@@
OR
@@ACTION:{"type": "ADD_WISHLIST", "data": {"item_name": "...", "estimated_cost": 0, "priority": 1}}@@

Rules for Fields:
- "type" for transaction: MUST be "income" (for pemasukan/pendapatan) or "expense" (for pengeluaran/biaya). DO NOT use Indonesian.
- "date": MUST be YYYY-MM-DD.
- "status": use "completed" if it already happened, "pending" if it hasn't.
- Amount: Use numbers ONLY.

DO NOT forget the @@ACTION:...@@ tag if the user wants to record something. Only one tag per response."""  # noqa: E501


class ChatPayload(TypedDict):
    """JSON body of ``POST /api/chat/logic-bell``."""

    text: str
    id: str
    fullainame: str
    nickainame: str
    senderName: str
    ownerName: str
    date: str
    role: str
    msgtype: str
    custom_profile: str


def resolve_display_name(profile_name: str | None, account_email: str | None) -> str:
    """Profile name, else the local part of the account email, else a fallback."""

    if profile_name and profile_name.strip():
        return profile_name.strip()
    if account_email and account_email.strip():
        local = account_email.strip().split("@", 1)[0]
        if local:
            return local
    return FALLBACK_DISPLAY_NAME


def build_persona(sender_name: str) -> str:
    return "\n".join(
        [
            f"- Namamu adalah {AI_NICKNAME}, asisten keuangan pintar dari aplikasi WangKu.",
            (
                f"- Kamu membantu pengguna bernama {sender_name} untuk merencanakan keuangan, "
                "menganalisis pengeluaran, dan memberi saran finansial."
            ),
            "- Kamu menggunakan Bahasa Indonesia santai namun tetap profesional.",
            "- Kamu paham tentang budgeting, investasi, menabung, dan manajemen utang.",
            (
                "- Kalau ditanya hal di luar keuangan, jawab singkat lalu arahkan kembali "
                "ke topik keuangan."
            ),
            "- Responsmu ringkas, jelas, dan memotivasi.",
        ]
    )


def build_custom_profile(sender_name: str, context_text: str) -> str:
    """Persona, then the context block, then the action grammar."""

    parts = [build_persona(sender_name)]
    if context_text:
        parts.append(context_text)
    parts.append(ACTION_GRAMMAR)
    return "\n\n".join(parts)


def build_chat_payload(
    text: str,
    *,
    conversation_id: str,
    sender_name: str,
    snapshot: FinancialSnapshot | None,
    today: date | None = None,
) -> ChatPayload:
    """Compose the conversational endpoint body for one user utterance.

    ``text`` is forwarded verbatim. ``snapshot`` may be ``None`` when no
    financial data could be gathered; the persona and grammar are still sent.
    """

    context_text = build_context_block(snapshot, CHAT_SECTIONS) if snapshot is not None else ""
    return {
        "text": text,
        "id": conversation_id,
        "fullainame": AI_FULL_NAME,
        "nickainame": AI_NICKNAME,
        "senderName": sender_name,
        "ownerName": sender_name,
        "date": (today or date.today()).isoformat(),
        "role": AI_ROLE,
        "msgtype": MESSAGE_TYPE,
        "custom_profile": build_custom_profile(sender_name, context_text),
    }


def build_summary_prompt(snapshot: FinancialSnapshot) -> str:
    """Prompt for the one-shot HTML financial summary."""

    context_text = build_context_block(snapshot, SUMMARY_SECTIONS)
    return "\n".join(
        [
            'Kamu adalah asisten keuangan pintar di dalam aplikasi "WangKu".',
            (
                "Tugasmu adalah memberikan ringkasan keuangan dan saran yang sangat ringkas, "
                "memotivasi, dan logis."
            ),
            "",
            context_text,
            "",
            "Panduan Balasan:",
            "1. Gunakan Bahasa Indonesia bergaya santai tapi profesional.",
            (
                "2. Analisis apakah saldo saat ini cukup untuk membayar tagihan mendatang. "
                "Beri saran alokasi dana jika tidak cukup."
            ),
            "3. Beri pandangan sekilas apakah wishlist masuk akal dibeli bulan ini.",
            (
                "4. Output berformat HTML mentah, langsung gunakan tag <p>, <strong>, <ul>, "
                "atau <li> untuk merapikan teks."
            ),
            "5. JANGAN membalut teks dengan ```html ... ```. Langsung output tag HTML.",
        ]
    )


__all__ = [
    "ACTION_GRAMMAR",
    "AI_FULL_NAME",
    "AI_NICKNAME",
    "FALLBACK_DISPLAY_NAME",
    "ChatPayload",
    "build_chat_payload",
    "build_custom_profile",
    "build_persona",
    "build_summary_prompt",
    "resolve_display_name",
]
