"""FastAPI app: public booking widget API, admin login, and the admin CRUD routes."""

from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv

# Load .env when running locally (application/.env or repo root .env / .env.local)
_app_dir = Path(__file__).resolve().parent.parent.parent  # application/
_repo_root = _app_dir.parent
load_dotenv(_app_dir / ".env")
load_dotenv(_app_dir / ".env.local")
load_dotenv(_repo_root / ".env")
load_dotenv(_repo_root / ".env.local")

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import auth, booking, dashboard, llm, notifications, scheduler, store
from .models import Appointment, Client, FinancialRecord, KanbanTask, new_id
from .state import RecordNotFoundError, SlotUnavailableError, StudioState

app = FastAPI(title="Studio Trigueira Braids", version="0.1.0")

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"

_state: StudioState | None = None


def get_state() -> StudioState:
    """Loaded once per process; every request shares it."""
    global _state
    if _state is None:
        _state = StudioState(store.default_store()).load()
    return _state


def get_auth(state: StudioState = Depends(get_state)) -> auth.AuthGate:
    return auth.AuthGate(state.store)


def get_drafter() -> llm.MessageDrafter:
    return llm.default_drafter()


def require_admin(gate: auth.AuthGate = Depends(get_auth)) -> None:
    """Anonymous visitors are sent to the login screen."""
    if not gate.is_authenticated():
        raise HTTPException(status_code=303, detail="Login required", headers={"Location": "/login"})


@app.exception_handler(RecordNotFoundError)
async def _not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SlotUnavailableError)
async def _slot_taken(request: Request, exc: SlotUnavailableError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": "Horário indisponível", "date": exc.date, "time": exc.time})


# ---------- Request bodies ----------

class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class BookingRequest(_Body):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN)


class LoginRequest(_Body):
    username: str
    password: str


class ClientCreate(_Body):
    name: str = Field(..., min_length=1)
    address: str = ""
    phone: str = ""
    email: str = ""
    status: Literal["active", "pending", "inactive"] = "active"
    treatment_stage: str = Field("", alias="treatmentStage")
    last_session_date: Optional[str] = Field(None, alias="lastSessionDate", pattern=DATE_PATTERN)


class ClientUpdate(_Body):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[Literal["active", "pending", "inactive"]] = None
    treatment_stage: Optional[str] = Field(None, alias="treatmentStage")
    last_session_date: Optional[str] = Field(None, alias="lastSessionDate", pattern=DATE_PATTERN)


class AppointmentCreate(_Body):
    client_id: str = Field(..., alias="clientId")
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN)
    type: str = booking.DEFAULT_SERVICE
    status: Literal["scheduled", "completed", "cancelled"] = "scheduled"
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, gt=0)


class AppointmentUpdate(_Body):
    client_id: Optional[str] = Field(None, alias="clientId")
    date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    type: Optional[str] = None
    status: Optional[Literal["scheduled", "completed", "cancelled"]] = None
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, gt=0)


class SettingsUpdate(_Body):
    default_price: Optional[float] = Field(None, alias="defaultPrice", ge=0)
    default_duration: Optional[int] = Field(None, alias="defaultDuration", gt=0)


class FinanceCreate(_Body):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    type: Literal["income", "expense"]
    date: str = Field(..., pattern=DATE_PATTERN)
    category: str = ""


class FinanceUpdate(_Body):
    description: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    type: Optional[Literal["income", "expense"]] = None
    date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    category: Optional[str] = None


class TaskCreate(_Body):
    title: str = Field(..., min_length=1)
    status: Literal["todo", "doing", "done"] = "todo"


class TaskUpdate(_Body):
    title: Optional[str] = None
    status: Optional[Literal["todo", "doing", "done"]] = None


def _updates(body: BaseModel) -> dict:
    """Only the fields the caller sent, keyed by record attribute name."""
    return body.model_dump(exclude_unset=True, by_alias=False)


# ---------- Public ----------

@app.get("/")
async def landing(state: StudioState = Depends(get_state)) -> dict:
    """What the booking widget needs to render: slots, earliest date, price."""
    return {
        "studio": llm.STUDIO_NAME,
        "professional": llm.PROFESSIONAL_NAME,
        "service": booking.DEFAULT_SERVICE,
        "timeSlots": list(scheduler.TIME_SLOTS),
        "minDate": scheduler.today_str(),
        "timezone": scheduler.DEFAULT_TZ,
        "defaultPrice": state.settings.default_price,
        "defaultDuration": state.settings.default_duration,
    }


@app.get("/api/slots")
async def slots(
    date: str = Query(..., pattern=DATE_PATTERN),
    state: StudioState = Depends(get_state),
) -> dict:
    return {"date": date, "slots": scheduler.available_slots(date, state.appointments)}


@app.post("/api/bookings", status_code=201)
async def create_booking(
    body: BookingRequest,
    state: StudioState = Depends(get_state),
    drafter: llm.MessageDrafter = Depends(get_drafter),
) -> dict:
    """Record the booking first; the confirmation draft never affects its outcome."""
    contact = booking.BookingContact(name=body.name.strip(), email=body.email.strip(), phone=body.phone.strip())
    appointment = booking.register_booking(state, contact, body.date, body.time)

    try:
        message = await drafter.draft_confirmation(contact.name, appointment.date, appointment.time)
    except Exception:
        traceback.print_exc(file=sys.stderr)
        message = llm.confirmation_fallback(contact.name, appointment.date, appointment.time)

    notifications.notify_new_booking(state, appointment)
    notifications.send_confirmation(contact.phone, message)

    return {
        "appointment": appointment.to_dict(),
        "message": message,
        "whatsappLink": llm.whatsapp_link(contact.phone, message),
    }


@app.post("/login")
async def login(body: LoginRequest, gate: auth.AuthGate = Depends(get_auth)) -> dict:
    if not gate.login(body.username, body.password):
        raise HTTPException(status_code=401, detail=auth.INVALID_CREDENTIALS_MESSAGE)
    return {"authenticated": True, "redirect": "/admin"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# ---------- Admin ----------

admin = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@admin.post("/logout")
async def logout(gate: auth.AuthGate = Depends(get_auth)) -> dict:
    gate.logout()
    return {"authenticated": False, "redirect": "/"}


@admin.get("")
async def admin_dashboard(state: StudioState = Depends(get_state)) -> dict:
    return dashboard.summarize(state).to_dict()


@admin.get("/clients")
async def list_clients(state: StudioState = Depends(get_state)) -> list[dict]:
    return [c.to_dict() for c in state.clients]


@admin.post("/clients", status_code=201)
async def create_client(body: ClientCreate, state: StudioState = Depends(get_state)) -> dict:
    client = Client(id=new_id("c"), **body.model_dump())
    return state.add_client(client).to_dict()


@admin.patch("/clients/{client_id}")
async def update_client(client_id: str, body: ClientUpdate, state: StudioState = Depends(get_state)) -> dict:
    return state.update_client(client_id, **_updates(body)).to_dict()


@admin.delete("/clients/{client_id}", status_code=204)
async def delete_client(client_id: str, state: StudioState = Depends(get_state)) -> Response:
    state.remove_client(client_id)
    return Response(status_code=204)


@admin.post("/clients/{client_id}/retention-message")
async def retention_message(
    client_id: str,
    state: StudioState = Depends(get_state),
    drafter: llm.MessageDrafter = Depends(get_drafter),
) -> dict:
    """Win-back WhatsApp draft for a client who has not been in for a while."""
    client = state.get_client(client_id)
    try:
        message = await drafter.draft_retention(client.name, client.last_session_date)
    except Exception:
        traceback.print_exc(file=sys.stderr)
        message = llm.retention_fallback(client.name)
    return {"clientId": client.id, "message": message, "whatsappLink": llm.whatsapp_link(client.phone, message)}


@admin.get("/schedule")
async def list_appointments(
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    state: StudioState = Depends(get_state),
) -> list[dict]:
    rows = [a for a in state.appointments if date is None or a.date == date]
    return [a.to_dict() for a in sorted(rows, key=lambda a: (a.date, a.time))]


@admin.post("/schedule", status_code=201)
async def create_appointment(body: AppointmentCreate, state: StudioState = Depends(get_state)) -> dict:
    appointment = Appointment(
        id=new_id("app"),
        client_id=body.client_id,
        date=body.date,
        time=body.time,
        type=body.type,
        status=body.status,
        price=body.price if body.price is not None else state.settings.default_price,
        duration=body.duration if body.duration is not None else state.settings.default_duration,
    )
    return state.add_appointment(appointment).to_dict()


@admin.patch("/schedule/{appointment_id}")
async def update_appointment(
    appointment_id: str, body: AppointmentUpdate, state: StudioState = Depends(get_state)
) -> dict:
    return state.update_appointment(appointment_id, **_updates(body)).to_dict()


@admin.delete("/schedule/{appointment_id}", status_code=204)
async def delete_appointment(appointment_id: str, state: StudioState = Depends(get_state)) -> Response:
    state.remove_appointment(appointment_id)
    return Response(status_code=204)


@admin.get("/settings")
async def get_settings(state: StudioState = Depends(get_state)) -> dict:
    return state.settings.to_dict()


@admin.put("/settings")
async def update_settings(body: SettingsUpdate, state: StudioState = Depends(get_state)) -> dict:
    return state.update_settings(**_updates(body)).to_dict()


@admin.get("/finance")
async def list_finances(state: StudioState = Depends(get_state)) -> list[dict]:
    return [r.to_dict() for r in state.finances]


@admin.post("/finance", status_code=201)
async def create_finance(body: FinanceCreate, state: StudioState = Depends(get_state)) -> dict:
    record = FinancialRecord(id=new_id("f"), **body.model_dump())
    return state.add_finance(record).to_dict()


@admin.patch("/finance/{record_id}")
async def update_finance(record_id: str, body: FinanceUpdate, state: StudioState = Depends(get_state)) -> dict:
    return state.update_finance(record_id, **_updates(body)).to_dict()


@admin.delete("/finance/{record_id}", status_code=204)
async def delete_finance(record_id: str, state: StudioState = Depends(get_state)) -> Response:
    state.remove_finance(record_id)
    return Response(status_code=204)


@admin.get("/tasks")
async def list_tasks(state: StudioState = Depends(get_state)) -> list[dict]:
    return [t.to_dict() for t in state.tasks]


@admin.post("/tasks", status_code=201)
async def create_task(body: TaskCreate, state: StudioState = Depends(get_state)) -> dict:
    return state.add_task(KanbanTask(id=new_id("k"), title=body.title, status=body.status)).to_dict()


@admin.patch("/tasks/{task_id}")
async def update_task(task_id: str, body: TaskUpdate, state: StudioState = Depends(get_state)) -> dict:
    return state.update_task(task_id, **_updates(body)).to_dict()


@admin.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, state: StudioState = Depends(get_state)) -> Response:
    state.remove_task(task_id)
    return Response(status_code=204)


app.include_router(admin)
