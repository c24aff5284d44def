# barbershop/routers/appointments_routes.py

from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Appointment, Service, User
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    AvailabilityResponse,
    CancelRequest,
    DateCheckResponse,
    StatusUpdate,
)
from barbershop.auth import get_current_user
from barbershop.deps import get_current_admin
from barbershop.booking import (
    BookingError,
    NotFoundError,
    book_appointment,
    cancel_appointment,
    get_appointment,
    set_status,
)
from barbershop.slots import available_slots_for_date, check_date


router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _public(session: Session, appt: Appointment) -> dict:
    """Appointment payload with its service and customer embedded."""
    payload = appt.model_dump()
    service = session.get(Service, appt.service_id)
    user = session.get(User, appt.user_id)
    payload["service"] = service.model_dump() if service is not None else None
    payload["user"] = user.model_dump() if user is not None else None
    return payload


def _load(session: Session, appt_id: int) -> Appointment:
    try:
        return get_appointment(session, appt_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


def _change_status(session: Session, appt_id: int, status: str) -> dict:
    appt = _load(session, appt_id)
    try:
        appt = set_status(session, appt, status)
    except BookingError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _public(session, appt)


def _cancel(session: Session, appt_id: int, current_user: dict, reason: Optional[str]) -> dict:
    appt = _load(session, appt_id)
    try:
        appt = cancel_appointment(session, appt, current_user, reason=reason)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except BookingError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _public(session, appt)


@router.get("/available-slots/{date}", response_model=AvailabilityResponse)
def available_slots(
    date: date,
    service_id: Optional[int] = Query(default=None, alias="serviceId"),
    session: Session = Depends(get_session),
):
    duration = None
    if service_id is not None:
        service = session.get(Service, service_id)
        if service is None or not service.is_active:
            raise HTTPException(status_code=400, detail="Service not found or inactive")
        duration = service.duration

    slots = available_slots_for_date(session, date, duration=duration)
    return {"date": date, "available_slots": slots}


@router.get("/check-date/{date}", response_model=DateCheckResponse)
def check_date_status(
    date: date,
    session: Session = Depends(get_session),
):
    return {"date": date, **check_date(session, date)}


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    try:
        db_appt = book_appointment(
            session,
            user_id=current_user["id"],
            service_id=appt.service_id,
            day=appt.date,
            start_time=appt.start_time,
            notes=appt.notes,
        )
    except BookingError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _public(session, db_appt)


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    on_date: Optional[date] = Query(default=None, alias="date"),
    status: Optional[AppointmentStatus] = None,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    stmt = select(Appointment)
    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)

    appts = session.exec(stmt.order_by(Appointment.date, Appointment.start_time)).all()
    return [_public(session, a) for a in appts]


@router.get("/my-appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    appts = session.exec(
        select(Appointment)
        .where(Appointment.user_id == current_user["id"])
        .order_by(Appointment.date, Appointment.start_time)
    ).all()
    return [_public(session, a) for a in appts]


@router.patch("/{appt_id}/status", response_model=AppointmentPublic)
def update_status(
    appt_id: int,
    update: StatusUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return _change_status(session, appt_id, update.status.value)


@router.patch("/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return _change_status(session, appt_id, "confirmed")


@router.patch("/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return _change_status(session, appt_id, "completed")


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_with_reason(
    appt_id: int,
    body: Optional[CancelRequest] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    reason = body.reason if body is not None else None
    return _cancel(session, appt_id, current_user, reason)


@router.delete("/{appt_id}", response_model=AppointmentPublic)
def cancel(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _cancel(session, appt_id, current_user, None)
