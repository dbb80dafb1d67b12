"""Admin dashboard: client counts, upcoming sessions, and the income/expense balance."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from . import scheduler
from .state import RecordNotFoundError, StudioState

UPCOMING_PREVIEW = 5


@dataclass
class DashboardSummary:
    total_clients: int
    active_clients: int
    pending_clients: int
    upcoming_appointments: int
    total_income: float
    total_expense: float
    next_appointments: list[dict[str, Any]] = field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expense

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalClients": self.total_clients,
            "activeClients": self.active_clients,
            "pendingClients": self.pending_clients,
            "upcomingAppointments": self.upcoming_appointments,
            "totalIncome": self.total_income,
            "totalExpense": self.total_expense,
            "balance": self.balance,
            "nextAppointments": self.next_appointments,
        }


def summarize(state: StudioState, now: datetime | None = None) -> DashboardSummary:
    today = scheduler.today_str(now)
    upcoming = sorted(
        (a for a in state.appointments if a.status == "scheduled" and a.date >= today),
        key=lambda a: (a.date, a.time),
    )

    preview: list[dict[str, Any]] = []
    for a in upcoming[:UPCOMING_PREVIEW]:
        entry = a.to_dict()
        try:
            entry["clientName"] = state.get_client(a.client_id).name
        except RecordNotFoundError:
            entry["clientName"] = None  # client deleted; appointments are not cascaded
        preview.append(entry)

    return DashboardSummary(
        total_clients=len(state.clients),
        active_clients=sum(1 for c in state.clients if c.status == "active"),
        pending_clients=sum(1 for c in state.clients if c.status == "pending"),
        upcoming_appointments=len(upcoming),
        total_income=sum(r.amount for r in state.finances if r.type == "income"),
        total_expense=sum(r.amount for r in state.finances if r.type == "expense"),
        next_appointments=preview,
    )
