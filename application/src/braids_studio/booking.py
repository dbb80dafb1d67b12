"""Online booking: reuse or create the client, then add the appointment and its income record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from . import scheduler
from .models import Appointment, Client, FinancialRecord, new_id
from .state import SlotUnavailableError, StudioState

DEFAULT_SERVICE = "Box Braids"
NEW_CLIENT_ADDRESS = "A combinar"
NEW_CLIENT_STATUS = "pending"
NEW_CLIENT_STAGE = "First Contact"
INCOME_CATEGORY = "Serviço"


@dataclass
class BookingContact:
    """What the public form collects."""
    name: str
    email: str
    phone: str


def register_booking(
    state: StudioState,
    contact: BookingContact,
    date_str: str,
    time_str: str,
    now: datetime | None = None,
) -> Appointment:
    """
    Book (date_str, time_str) for the contact and return the new appointment.

    The slot must be one currently offered by scheduler.available_slots. Clients are
    matched by email, case-insensitively; an unknown email creates a pending client.
    Price and duration come from the current settings, and an income record for the
    same amount is added together with the appointment.
    """
    if time_str not in scheduler.available_slots(date_str, state.appointments, now):
        raise SlotUnavailableError(date_str, time_str)

    new_client: Client | None = None
    existing = state.find_client_by_email(contact.email)
    if existing is not None:
        client_id = existing.id
    else:
        new_client = Client(
            id=new_id("c"),
            name=contact.name,
            address=NEW_CLIENT_ADDRESS,
            phone=contact.phone,
            email=contact.email,
            status=NEW_CLIENT_STATUS,
            treatment_stage=NEW_CLIENT_STAGE,
        )
        client_id = new_client.id

    price = state.settings.default_price
    appointment = Appointment(
        id=new_id("app"),
        client_id=client_id,
        date=date_str,
        time=time_str,
        type=DEFAULT_SERVICE,
        status="scheduled",
        price=price,
        duration=state.settings.default_duration,
    )
    record = FinancialRecord(
        id=new_id("f"),
        description=f"Agendamento Online - {contact.name}",
        amount=price,
        type="income",
        date=date_str,
        category=INCOME_CATEGORY,
    )
    return state.commit_booking(new_client, appointment, record)
