# barbershop/booking.py

"""Appointment creation and status changes.

Creation validates the requested interval against the service, the
business window and unavailabilities, then re-checks existing bookings
immediately before the insert while holding a per-date lock.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlmodel import Session

from barbershop.config import shop_settings
from barbershop.core import (
    InvalidTimeError,
    add_minutes,
    local_now,
    normalize_time,
    overlaps,
    parse_time,
)
from barbershop.models import Appointment, Service
from barbershop.slots import active_unavailabilities, business_window, find_conflicts

logger = logging.getLogger(__name__)

STATUSES = ("pending", "confirmed", "completed", "cancelled")


class BookingError(Exception):
    pass


class SlotTakenError(BookingError):
    pass


class NotFoundError(Exception):
    pass


# fixed pool; two dates may share a stripe, which only costs some contention
_LOCK_STRIPES = 64
_date_locks: List[threading.Lock] = [threading.Lock() for _ in range(_LOCK_STRIPES)]


@contextmanager
def booking_lock(day: date):
    # serializes check-then-insert for one calendar day within this process
    with _date_locks[day.toordinal() % _LOCK_STRIPES]:
        yield


def book_appointment(
    session: Session,
    user_id: int,
    service_id: int,
    day: date,
    start_time: str,
    notes: Optional[str] = None,
) -> Appointment:
    # 1) Validate service
    service = session.get(Service, service_id)
    if service is None or not service.is_active:
        raise BookingError("Service not found or inactive")

    # 2) Build appointment interval
    try:
        start_time = normalize_time(start_time)
        end_time = add_minutes(start_time, service.duration)
    except InvalidTimeError as exc:
        raise BookingError(str(exc))
    start, end = parse_time(start_time), parse_time(end_time)

    # 3) Prevent booking in the past (server-local time)
    starts_at = datetime.combine(day, datetime.min.time()) + timedelta(minutes=start)
    if starts_at < local_now():
        raise BookingError("Cannot book an appointment in the past")

    # 4) Business window for that weekday
    schedule = business_window(session, day)
    if schedule is None:
        raise BookingError("The shop is closed on this day")
    if start < parse_time(schedule.start_time) or end > parse_time(schedule.end_time):
        raise BookingError(
            f"Appointment must be within business hours ({schedule.start_time} - {schedule.end_time})"
        )

    # 5) Unavailability windows
    for u in active_unavailabilities(session, day):
        if overlaps(start, end, parse_time(u.start_time), parse_time(u.end_time)):
            raise BookingError(f"The shop is unavailable at this time: {u.reason}")

    # 6) Re-check existing bookings right before the insert
    with booking_lock(day):
        if find_conflicts(session, day, start_time, service.duration):
            logger.info("Rejected booking on %s at %s: slot already taken", day, start_time)
            raise SlotTakenError("This time slot is already booked")

        appointment = Appointment(
            user_id=user_id,
            service_id=service.id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status="pending",
            notes=notes,
            total_price=service.price,
        )
        session.add(appointment)
        session.commit()

    session.refresh(appointment)
    logger.info(
        "Booked appointment %s on %s %s-%s for user %s",
        appointment.id, day, start_time, end_time, user_id,
    )
    return appointment


def get_appointment(session: Session, appt_id: int) -> Appointment:
    appointment = session.get(Appointment, appt_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


def set_status(session: Session, appointment: Appointment, status: str) -> Appointment:
    if status not in STATUSES:
        raise BookingError(f"status must be one of: {', '.join(STATUSES)}")

    if appointment.status != "cancelled" or status == "cancelled":
        _save_status(session, appointment, status)
    else:
        # reviving a cancelled booking claims its slot again
        duration = parse_time(appointment.end_time) - parse_time(appointment.start_time)
        with booking_lock(appointment.date):
            if find_conflicts(
                session, appointment.date, appointment.start_time, duration,
                exclude_id=appointment.id,
            ):
                logger.info("Refused to restore appointment %s: slot already taken", appointment.id)
                raise SlotTakenError("This time slot is already booked")
            _save_status(session, appointment, status)

    session.refresh(appointment)
    logger.info("Appointment %s is now %s", appointment.id, status)
    return appointment


def _save_status(session: Session, appointment: Appointment, status: str) -> None:
    appointment.status = status
    appointment.updated_at = local_now()
    session.add(appointment)
    session.commit()


def cancel_appointment(
    session: Session,
    appointment: Appointment,
    actor: dict,
    reason: Optional[str] = None,
) -> Appointment:
    """Cancel ``appointment`` on behalf of ``actor`` (the current user dict).

    Customers may only cancel their own bookings, and only up to
    ``cancel_notice_hours`` before the start. Admins may cancel anything
    that is not completed.
    """
    is_admin = actor["role"] == "admin"
    if not is_admin and appointment.user_id != actor["id"]:
        # other customers' bookings are invisible
        raise NotFoundError("Appointment not found")

    if appointment.status == "cancelled":
        raise BookingError("This appointment is already cancelled")
    if appointment.status == "completed":
        raise BookingError("A completed appointment cannot be cancelled")

    if not is_admin:
        starts_at = datetime.combine(appointment.date, datetime.min.time()) + timedelta(
            minutes=parse_time(appointment.start_time)
        )
        notice = timedelta(hours=shop_settings["cancel_notice_hours"])
        if starts_at - local_now() < notice:
            raise BookingError(
                f"Appointments cannot be cancelled less than "
                f"{shop_settings['cancel_notice_hours']} hours in advance. Please contact the shop."
            )

    if reason:
        note = f"Cancellation reason: {reason}"
        appointment.notes = f"{appointment.notes}\n\n{note}" if appointment.notes else note

    return set_status(session, appointment, "cancelled")
