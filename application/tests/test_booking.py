"""Unit tests for register_booking: client reuse, appointment + income record, slot rules."""

from __future__ import annotations

import json

import pytest

from src.braids_studio.booking import BookingContact, register_booking
from src.braids_studio.scheduler import available_slots
from src.braids_studio.state import SlotUnavailableError, StudioState
from src.braids_studio.store import APPOINTMENTS_KEY, CLIENTS_KEY, FINANCES_KEY, MemoryStore

ANA = BookingContact(name="Ana", email="ana@x.com", phone="21912345678")


def test_new_client_booking_scenario(state, now):
    clients_before = len(state.clients)
    appointment = register_booking(state, ANA, "2024-06-10", "13:00", now)

    assert len(state.clients) == clients_before + 1
    client = state.clients[-1]
    assert client.name == "Ana"
    assert client.email == "ana@x.com"
    assert client.status == "pending"
    assert client.treatment_stage == "First Contact"
    assert client.address == "A combinar"

    assert appointment.client_id == client.id
    assert appointment.date == "2024-06-10"
    assert appointment.time == "13:00"
    assert appointment.price == 250
    assert appointment.duration == 240
    assert appointment.status == "scheduled"
    assert appointment.type == "Box Braids"
    assert state.appointments[-1] is appointment

    assert len(state.finances) == 1
    record = state.finances[0]
    assert record.amount == 250
    assert record.type == "income"
    assert record.date == "2024-06-10"
    assert record.category == "Serviço"
    assert record.description == "Agendamento Online - Ana"


def test_existing_email_reuses_client(state, now):
    contact = BookingContact(name="Juliana S.", email="JULIANA@EMAIL.com", phone="21999999999")
    appointment = register_booking(state, contact, "2024-06-10", "08:00", now)
    assert len(state.clients) == 1
    assert appointment.client_id == "1"


def test_each_booking_adds_one_appointment_and_one_record(state, now):
    for time_str in ("08:00", "13:00", "14:00"):
        appts, records = len(state.appointments), len(state.finances)
        register_booking(state, ANA, "2024-06-11", time_str, now)
        assert len(state.appointments) == appts + 1
        assert len(state.finances) == records + 1
    # Same email every time: only one new client
    assert sum(1 for c in state.clients if c.email == "ana@x.com") == 1


def test_income_follows_current_price_setting(state, now):
    state.update_settings(default_price=320, default_duration=300)
    appointment = register_booking(state, ANA, "2024-06-10", "14:00", now)
    assert appointment.price == 320
    assert appointment.duration == 300
    assert state.finances[-1].amount == 320


def test_booked_slot_is_gone_and_cannot_be_rebooked(state, now):
    register_booking(state, ANA, "2024-06-10", "13:00", now)
    assert "13:00" not in available_slots("2024-06-10", state.appointments, now)
    other = BookingContact(name="Carla", email="carla@x.com", phone="21900000000")
    with pytest.raises(SlotUnavailableError):
        register_booking(state, other, "2024-06-10", "13:00", now)
    assert not any(c.email == "carla@x.com" for c in state.clients)


def test_slots_outside_the_offer_are_rejected(state, now):
    with pytest.raises(SlotUnavailableError):
        register_booking(state, ANA, "2024-06-10", "10:00", now)
    with pytest.raises(SlotUnavailableError):
        register_booking(state, ANA, "2024-05-31", "13:00", now)
    # The fixture's now is 10:00 on 2024-06-01, so the 08:00 slot has passed
    with pytest.raises(SlotUnavailableError):
        register_booking(state, ANA, "2024-06-01", "08:00", now)
    register_booking(state, ANA, "2024-06-01", "13:00", now)


def test_booking_is_persisted(state, store, now):
    appointment = register_booking(state, ANA, "2024-06-10", "13:00", now)
    assert json.loads(store.data[APPOINTMENTS_KEY])[-1]["id"] == appointment.id
    assert json.loads(store.data[FINANCES_KEY])[-1]["amount"] == 250
    assert json.loads(store.data[CLIENTS_KEY])[-1]["email"] == "ana@x.com"


class _FailingFinanceStore(MemoryStore):
    """Accepts every write except the finance snapshot, once."""

    def __init__(self):
        super().__init__()
        self.fail_next_finance = False

    def set(self, key, value):
        if key == FINANCES_KEY and self.fail_next_finance:
            self.fail_next_finance = False
            raise OSError("disk full")
        super().set(key, value)


def test_failed_write_leaves_nothing_behind(now):
    store = _FailingFinanceStore()
    state = StudioState(store).load(now)
    state.flush_all()
    clients_before = store.data[CLIENTS_KEY]
    appointments_before = store.data[APPOINTMENTS_KEY]

    store.fail_next_finance = True
    with pytest.raises(OSError):
        register_booking(state, ANA, "2024-06-10", "13:00", now)

    assert len(state.clients) == 1
    assert len(state.appointments) == 1
    assert state.finances == []
    assert store.data[CLIENTS_KEY] == clients_before
    assert store.data[APPOINTMENTS_KEY] == appointments_before
    assert "13:00" in available_slots("2024-06-10", state.appointments, now)
