"""Studio records: clients, appointments, financial records, kanban tasks, settings."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from typing import Any

CLIENT_STATUSES = ("active", "pending", "inactive")
APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled")
FINANCE_TYPES = ("income", "expense")
TASK_STATUSES = ("todo", "doing", "done")

DEFAULT_PRICE = 250
DEFAULT_DURATION = 240  # minutes


def new_id(prefix: str = "") -> str:
    """Opaque record id, e.g. 'app-3f9c1a2b7d4e'."""
    token = uuid.uuid4().hex[:12]
    return f"{prefix}-{token}" if prefix else token


def _number(value: Any, default: float = 0.0) -> float | int:
    """Keep ints as ints (JSON snapshots round-trip 250, not 250.0). NaN and infinities give default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed):
        return default
    return int(parsed) if parsed.is_integer() else parsed


@dataclass
class Client:
    id: str
    name: str
    address: str
    phone: str
    email: str
    status: str = "active"
    treatment_stage: str = ""
    last_session_date: str | None = None  # YYYY-MM-DD

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "treatmentStage": self.treatment_stage,
        }
        if self.last_session_date:
            out["lastSessionDate"] = self.last_session_date
        return out

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Client":
        return cls(
            id=str(d["id"]),
            name=d.get("name", ""),
            address=d.get("address", ""),
            phone=d.get("phone", ""),
            email=d.get("email", ""),
            status=d.get("status", "active"),
            treatment_stage=d.get("treatmentStage", ""),
            last_session_date=d.get("lastSessionDate") or None,
        )


@dataclass
class Appointment:
    """A booked session. (date, time) with status != cancelled occupies a slot."""
    id: str
    client_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    type: str
    status: str
    price: float
    duration: int  # minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "date": self.date,
            "time": self.time,
            "type": self.type,
            "status": self.status,
            "price": self.price,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Appointment":
        return cls(
            id=str(d["id"]),
            client_id=str(d.get("clientId", "")),
            date=d["date"],
            time=d["time"],
            type=d.get("type", ""),
            status=d.get("status", "scheduled"),
            price=_number(d.get("price")),
            duration=int(_number(d.get("duration"), DEFAULT_DURATION)),
        )


@dataclass
class FinancialRecord:
    id: str
    description: str
    amount: float
    type: str  # income | expense
    date: str
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "type": self.type,
            "date": self.date,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "FinancialRecord":
        return cls(
            id=str(d["id"]),
            description=d.get("description", ""),
            amount=_number(d.get("amount")),
            type=d.get("type", "income"),
            date=d.get("date", ""),
            category=d.get("category", ""),
        )


@dataclass
class KanbanTask:
    id: str
    title: str
    status: str = "todo"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "status": self.status}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "KanbanTask":
        return cls(id=str(d["id"]), title=d.get("title", ""), status=d.get("status", "todo"))


@dataclass
class GlobalSettings:
    """Price and duration applied to every online booking."""
    default_price: float = DEFAULT_PRICE
    default_duration: int = DEFAULT_DURATION

    def to_dict(self) -> dict[str, Any]:
        return {"defaultPrice": self.default_price, "defaultDuration": self.default_duration}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "GlobalSettings":
        return cls(
            default_price=_number(d.get("defaultPrice"), DEFAULT_PRICE),
            default_duration=int(_number(d.get("defaultDuration"), DEFAULT_DURATION)),
        )
