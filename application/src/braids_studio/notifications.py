"""Tell the studio about online bookings, and optionally confirm to the client on WhatsApp."""

from __future__ import annotations

import os
import sys

from . import twilio_handler
from .models import Appointment
from .scheduler import format_date_br
from .state import RecordNotFoundError, StudioState


def _provider_phone() -> str | None:
    return (os.environ.get("PROVIDER_PHONE_NUMBER") or "").strip() or None


def _send_confirmations() -> bool:
    return (os.environ.get("SEND_WHATSAPP_CONFIRMATION") or "").strip().lower() in ("1", "true", "yes")


def notify_new_booking(state: StudioState, appointment: Appointment) -> bool:
    """Send SMS to the studio with the booking summary. Returns True if sent."""
    phone = _provider_phone()
    if not phone:
        print("[notifications] PROVIDER_PHONE_NUMBER not set; skipping booking SMS", file=sys.stderr)
        return False
    try:
        client = state.get_client(appointment.client_id)
        who = f"{client.name} ({client.phone})"
    except RecordNotFoundError:
        who = f"cliente {appointment.client_id}"
    body = (
        f"[Trigueira] Novo agendamento online: {who} | "
        f"{format_date_br(appointment.date)} às {appointment.time} | "
        f"{appointment.type} R$ {appointment.price}"
    )
    sid = twilio_handler.send_sms(phone, body)
    if sid:
        print(f"[notifications] Booking alert sent to studio (SID {sid})", file=sys.stderr)
    return sid is not None


def send_confirmation(phone: str, message: str) -> bool:
    """WhatsApp the drafted confirmation to the client when SEND_WHATSAPP_CONFIRMATION is on."""
    if not _send_confirmations():
        return False
    if not (phone or "").strip():
        print("[notifications] Client has no phone; skipping WhatsApp confirmation", file=sys.stderr)
        return False
    sid = twilio_handler.send_whatsapp(phone, message)
    if sid:
        print(f"[notifications] WhatsApp confirmation sent (SID {sid})", file=sys.stderr)
    return sid is not None
