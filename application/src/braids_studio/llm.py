"""Anthropic Claude: WhatsApp copy for booking confirmations and win-back messages."""

from __future__ import annotations

import os
import re
import sys
from typing import Protocol
from urllib.parse import quote

from anthropic import AsyncAnthropic

from .scheduler import format_date_br

STUDIO_NAME = "Studio Trigueira Braids"
PROFESSIONAL_NAME = "Vitória Trigueira"

SYSTEM_PROMPT = f"""You write WhatsApp messages for {STUDIO_NAME}, an Afro braiding studio in Brazil run by {PROFESSIONAL_NAME}.
Always answer in Brazilian Portuguese, with a warm, professional tone. Keep it short enough for one WhatsApp message.
Reply with the message text only: no preamble, no quotes, no alternatives."""


class MessageDrafter(Protocol):
    async def draft_confirmation(self, client_name: str, date_str: str, time_str: str) -> str: ...

    async def draft_retention(self, client_name: str, last_session: str | None = None) -> str: ...


def confirmation_fallback(client_name: str, date_str: str, time_str: str) -> str:
    return (
        f"Olá {client_name}, seu momento de rainha está confirmado! {PROFESSIONAL_NAME} te espera "
        f"no {STUDIO_NAME} dia {date_str} às {time_str}. 👑✨"
    )


def retention_fallback(client_name: str) -> str:
    return (
        f"Olá {client_name}, como estão suas tranças? A Rainha aqui está com saudades! "
        f"Notei que já faz um tempinho que não renovamos seu visual no {STUDIO_NAME}. "
        "Que tal agendarmos um horário? 👑✨"
    )


def confirmation_prompt(client_name: str, date_str: str, time_str: str) -> str:
    return (
        f"Escreva uma mensagem de confirmação de agendamento de tranças para a cliente {client_name}.\n"
        f"Data: {format_date_br(date_str)} às {time_str}.\n"
        f"A profissional é {PROFESSIONAL_NAME} do {STUDIO_NAME}.\n"
        "A mensagem deve ser entusiasmada, falar sobre 'coroar' a cliente e lembrar de vir "
        "com o cabelo lavado e seco."
    )


def retention_prompt(client_name: str, last_session: str | None) -> str:
    since = format_date_br(last_session) if last_session else "algum tempo"
    return (
        "Escreva uma mensagem curta, carinhosa e profissional para o WhatsApp de uma cliente "
        f"chamada {client_name} que não faz tranças com a {PROFESSIONAL_NAME} desde {since}. "
        "O objetivo é lembrar da manutenção das tranças, perguntar como está o cabelo e oferecer "
        f"um novo horário para renovar o visual no {STUDIO_NAME}. Use emojis de coroa, brilhos "
        "e tons de empoderamento feminino."
    )


class TemplateDrafter:
    """Deterministic texts; also what ClaudeDrafter falls back to."""

    async def draft_confirmation(self, client_name: str, date_str: str, time_str: str) -> str:
        return confirmation_fallback(client_name, date_str, time_str)

    async def draft_retention(self, client_name: str, last_session: str | None = None) -> str:
        return retention_fallback(client_name)


def _client() -> AsyncAnthropic:
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ValueError("ANTHROPIC_API_KEY is not set")
    return AsyncAnthropic(api_key=api_key)


def _model() -> str:
    return os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")


async def _raw_reply(prompt: str) -> str:
    """Single-turn call to Claude. Raises on API errors or an empty reply."""
    client = _client()
    resp = await client.messages.create(
        model=_model(),
        max_tokens=400,
        system=SYSTEM_PROMPT,
        messages=[{"role": "user", "content": prompt}],
    )
    if not resp.content or not getattr(resp.content[0], "text", ""):
        raise ValueError("empty reply from model")
    return resp.content[0].text.strip()


class ClaudeDrafter:
    """Drafts with Claude; any failure is logged and replaced by the template text."""

    async def draft_confirmation(self, client_name: str, date_str: str, time_str: str) -> str:
        try:
            return await _raw_reply(confirmation_prompt(client_name, date_str, time_str))
        except Exception as exc:
            print(f"[llm.draft_confirmation] Claude failed, using template: {exc!r}", file=sys.stderr)
            return confirmation_fallback(client_name, date_str, time_str)

    async def draft_retention(self, client_name: str, last_session: str | None = None) -> str:
        try:
            return await _raw_reply(retention_prompt(client_name, last_session))
        except Exception as exc:
            print(f"[llm.draft_retention] Claude failed, using template: {exc!r}", file=sys.stderr)
            return retention_fallback(client_name)


def default_drafter() -> MessageDrafter:
    """Claude when ANTHROPIC_API_KEY is set, templates otherwise."""
    if os.environ.get("ANTHROPIC_API_KEY"):
        return ClaudeDrafter()
    return TemplateDrafter()


def whatsapp_link(phone: str, text: str) -> str:
    """wa.me link with the text prefilled. Numbers without a country code are assumed Brazilian."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) in (10, 11):  # DDD + number
        digits = "55" + digits
    return f"https://wa.me/{digits}?text={quote(text)}"
