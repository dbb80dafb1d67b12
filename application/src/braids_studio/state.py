"""In-memory collections for the whole studio, flushed to the store after every change."""

from __future__ import annotations

import json
import sys
from dataclasses import fields
from datetime import datetime
from typing import Any, Callable

from . import scheduler
from .models import Appointment, Client, FinancialRecord, GlobalSettings, KanbanTask
from .store import (
    APPOINTMENTS_KEY,
    CLIENTS_KEY,
    FINANCES_KEY,
    KANBAN_KEY,
    SETTINGS_KEY,
    KeyValueStore,
)


class RecordNotFoundError(LookupError):
    """No record with the given id in the collection."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection} record {record_id!r} not found")
        self.collection = collection
        self.record_id = record_id


class SlotUnavailableError(ValueError):
    """The (date, time) pair is already held by a non-cancelled appointment, or not offered."""

    def __init__(self, date_str: str, time_str: str):
        super().__init__(f"slot {date_str} {time_str} is not available")
        self.date = date_str
        self.time = time_str


def default_clients() -> list[Client]:
    return [
        Client(
            id="1",
            name="Juliana Silva",
            address="Rio de Janeiro",
            phone="21999999999",
            email="juliana@email.com",
            status="active",
            treatment_stage="Regular",
            last_session_date="2024-01-15",
        )
    ]


def default_appointments(now: datetime | None = None) -> list[Appointment]:
    return [
        Appointment(
            id="app-juliana-1",
            client_id="1",
            date=scheduler.tomorrow_str(now),
            time="08:00",
            type="Box Braids",
            status="scheduled",
            price=350,
            duration=360,
        )
    ]


def default_tasks() -> list[KanbanTask]:
    return [
        KanbanTask(id="k1", title="Comprar Jumbo Roxo e Dourado", status="todo"),
        KanbanTask(id="k2", title="Repor pomada modeladora", status="doing"),
    ]


def _load_list(store: KeyValueStore, key: str, parse: Callable[[dict[str, Any]], Any], default: Callable[[], list]) -> list:
    raw = store.get(key)
    if raw is None:
        return default()
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"expected a list, got {type(data).__name__}")
        return [parse(d) for d in data]
    except (ValueError, TypeError, KeyError, AttributeError, OverflowError) as exc:
        print(f"[state.load] Malformed snapshot for {key}, using defaults: {exc!r}", file=sys.stderr)
        return default()


def _load_settings(store: KeyValueStore) -> GlobalSettings:
    raw = store.get(SETTINGS_KEY)
    if raw is None:
        return GlobalSettings()
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        return GlobalSettings.from_dict(data)
    except (ValueError, TypeError, OverflowError) as exc:
        print(f"[state.load] Malformed snapshot for {SETTINGS_KEY}, using defaults: {exc!r}", file=sys.stderr)
        return GlobalSettings()


def _apply_updates(record: Any, updates: dict[str, Any]) -> None:
    """
    Merge updates into a dataclass record. The id is never changed; None clears
    optional attributes (default None) and is ignored for required ones.
    """
    nullable = {f.name: f.default is None for f in fields(record)}
    for name, value in updates.items():
        if name == "id" or name not in nullable:
            continue
        if value is None and not nullable[name]:
            continue
        setattr(record, name, value)


class StudioState:
    """
    Single source of truth for clients, appointments, finances, tasks and settings.

    Every mutation goes through a named method that rewrites the full snapshot
    of the collection it touched.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.clients: list[Client] = []
        self.appointments: list[Appointment] = []
        self.finances: list[FinancialRecord] = []
        self.tasks: list[KanbanTask] = []
        self.settings = GlobalSettings()

    def load(self, now: datetime | None = None) -> "StudioState":
        """Rehydrate every collection; missing or malformed snapshots fall back to defaults."""
        self.clients = _load_list(self.store, CLIENTS_KEY, Client.from_dict, default_clients)
        self.appointments = _load_list(
            self.store, APPOINTMENTS_KEY, Appointment.from_dict, lambda: default_appointments(now)
        )
        self.finances = _load_list(self.store, FINANCES_KEY, FinancialRecord.from_dict, list)
        self.tasks = _load_list(self.store, KANBAN_KEY, KanbanTask.from_dict, default_tasks)
        self.settings = _load_settings(self.store)
        return self

    # -- persistence -------------------------------------------------------

    def _snapshot(self, key: str) -> str:
        if key == SETTINGS_KEY:
            return json.dumps(self.settings.to_dict())
        records = {
            CLIENTS_KEY: self.clients,
            APPOINTMENTS_KEY: self.appointments,
            FINANCES_KEY: self.finances,
            KANBAN_KEY: self.tasks,
        }[key]
        return json.dumps([r.to_dict() for r in records], ensure_ascii=False)

    def _flush(self, *keys: str) -> None:
        for key in keys:
            self.store.set(key, self._snapshot(key))

    def flush_all(self) -> None:
        self._flush(CLIENTS_KEY, APPOINTMENTS_KEY, FINANCES_KEY, KANBAN_KEY, SETTINGS_KEY)

    # -- lookups -----------------------------------------------------------

    @staticmethod
    def _find(records: list, record_id: str, collection: str):
        for r in records:
            if r.id == record_id:
                return r
        raise RecordNotFoundError(collection, record_id)

    def get_client(self, client_id: str) -> Client:
        return self._find(self.clients, client_id, "client")

    def find_client_by_email(self, email: str) -> Client | None:
        wanted = (email or "").strip().lower()
        if not wanted:
            return None
        for c in self.clients:
            if (c.email or "").strip().lower() == wanted:
                return c
        return None

    def get_appointment(self, appointment_id: str) -> Appointment:
        return self._find(self.appointments, appointment_id, "appointment")

    def get_finance(self, record_id: str) -> FinancialRecord:
        return self._find(self.finances, record_id, "finance")

    def get_task(self, task_id: str) -> KanbanTask:
        return self._find(self.tasks, task_id, "task")

    # -- clients -----------------------------------------------------------

    def add_client(self, client: Client) -> Client:
        self.clients.append(client)
        self._flush(CLIENTS_KEY)
        return client

    def update_client(self, client_id: str, **updates: Any) -> Client:
        client = self.get_client(client_id)
        _apply_updates(client, updates)
        self._flush(CLIENTS_KEY)
        return client

    def remove_client(self, client_id: str) -> None:
        """Appointments that reference the client are kept."""
        client = self.get_client(client_id)
        self.clients.remove(client)
        self._flush(CLIENTS_KEY)

    # -- appointments ------------------------------------------------------

    def _check_slot_free(self, date_str: str, time_str: str, ignore_id: str | None = None) -> None:
        others = [a for a in self.appointments if a.id != ignore_id]
        if scheduler.is_slot_taken(date_str, time_str, others):
            raise SlotUnavailableError(date_str, time_str)

    def add_appointment(self, appointment: Appointment) -> Appointment:
        if appointment.status != "cancelled":
            self._check_slot_free(appointment.date, appointment.time)
        self.appointments.append(appointment)
        self._flush(APPOINTMENTS_KEY)
        return appointment

    def update_appointment(self, appointment_id: str, **updates: Any) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        date_str = updates.get("date") or appointment.date
        time_str = updates.get("time") or appointment.time
        status = updates.get("status") or appointment.status
        if status != "cancelled":
            self._check_slot_free(date_str, time_str, ignore_id=appointment_id)
        _apply_updates(appointment, updates)
        self._flush(APPOINTMENTS_KEY)
        return appointment

    def remove_appointment(self, appointment_id: str) -> None:
        appointment = self.get_appointment(appointment_id)
        self.appointments.remove(appointment)
        self._flush(APPOINTMENTS_KEY)

    # -- finances ----------------------------------------------------------

    def add_finance(self, record: FinancialRecord) -> FinancialRecord:
        self.finances.append(record)
        self._flush(FINANCES_KEY)
        return record

    def update_finance(self, record_id: str, **updates: Any) -> FinancialRecord:
        record = self.get_finance(record_id)
        _apply_updates(record, updates)
        self._flush(FINANCES_KEY)
        return record

    def remove_finance(self, record_id: str) -> None:
        record = self.get_finance(record_id)
        self.finances.remove(record)
        self._flush(FINANCES_KEY)

    # -- kanban ------------------------------------------------------------

    def add_task(self, task: KanbanTask) -> KanbanTask:
        self.tasks.append(task)
        self._flush(KANBAN_KEY)
        return task

    def update_task(self, task_id: str, **updates: Any) -> KanbanTask:
        task = self.get_task(task_id)
        _apply_updates(task, updates)
        self._flush(KANBAN_KEY)
        return task

    def remove_task(self, task_id: str) -> None:
        task = self.get_task(task_id)
        self.tasks.remove(task)
        self._flush(KANBAN_KEY)

    # -- settings ----------------------------------------------------------

    def update_settings(self, **updates: Any) -> GlobalSettings:
        _apply_updates(self.settings, updates)
        self._flush(SETTINGS_KEY)
        return self.settings

    # -- booking -----------------------------------------------------------

    def commit_booking(
        self,
        client: Client | None,
        appointment: Appointment,
        record: FinancialRecord,
    ) -> Appointment:
        """
        Append a new client (if any), the appointment and its income record as one step.

        If a store write fails, the in-memory collections are restored, the previous
        snapshots are written back, and the original error propagates.
        """
        self._check_slot_free(appointment.date, appointment.time)
        keys = [APPOINTMENTS_KEY, FINANCES_KEY]
        if client is not None:
            keys.insert(0, CLIENTS_KEY)
        before = {key: self._snapshot(key) for key in keys}
        saved = (list(self.clients), list(self.appointments), list(self.finances))

        if client is not None:
            self.clients.append(client)
        self.appointments.append(appointment)
        self.finances.append(record)
        try:
            self._flush(*keys)
        except Exception:
            self.clients, self.appointments, self.finances = saved
            for key, snapshot in before.items():
                try:
                    self.store.set(key, snapshot)
                except Exception as exc:
                    print(f"[state.commit_booking] Could not restore {key}: {exc!r}", file=sys.stderr)
            raise
        return appointment
