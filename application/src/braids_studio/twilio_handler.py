"""Outbound SMS and WhatsApp through Twilio. Best effort: failures return None."""

from __future__ import annotations

import os
import sys

from twilio.rest import Client


def get_twilio_client() -> Client:
    sid = os.environ.get("TWILIO_ACCOUNT_SID")
    token = os.environ.get("TWILIO_AUTH_TOKEN")
    if not sid or not token:
        raise ValueError("TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN must be set")
    return Client(sid, token)


def get_from_number() -> str:
    num = os.environ.get("TWILIO_PHONE_NUMBER")
    if not num:
        raise ValueError("TWILIO_PHONE_NUMBER must be set")
    return num


def get_whatsapp_from() -> str:
    """WhatsApp sender; defaults to the SMS number when TWILIO_WHATSAPP_NUMBER is unset."""
    num = os.environ.get("TWILIO_WHATSAPP_NUMBER") or get_from_number()
    return num if num.startswith("whatsapp:") else f"whatsapp:{num}"


def to_e164_br(phone: str) -> str:
    """'(21) 99999-9999' -> '+5521999999999'. Numbers already starting with '+' keep their country code."""
    phone = (phone or "").strip()
    digits = "".join(ch for ch in phone if ch.isdigit())
    if phone.startswith("+"):
        return f"+{digits}"
    if len(digits) in (10, 11):
        digits = "55" + digits
    return f"+{digits}"


def send_sms(to_phone: str, body: str) -> str | None:
    """Send SMS from TWILIO_PHONE_NUMBER to to_phone. Returns message SID or None on failure."""
    try:
        client = get_twilio_client()
        from_number = get_from_number()
        msg = client.messages.create(to=to_e164_br(to_phone), from_=from_number, body=body)
        return msg.sid
    except Exception as exc:
        print(f"[twilio_handler.send_sms] Failed to send SMS: {exc!r}", file=sys.stderr)
        return None


def send_whatsapp(to_phone: str, body: str) -> str | None:
    """Send a WhatsApp message to to_phone. Returns message SID or None on failure."""
    try:
        client = get_twilio_client()
        from_number = get_whatsapp_from()
        msg = client.messages.create(to=f"whatsapp:{to_e164_br(to_phone)}", from_=from_number, body=body)
        return msg.sid
    except Exception as exc:
        print(f"[twilio_handler.send_whatsapp] Failed to send WhatsApp: {exc!r}", file=sys.stderr)
        return None
