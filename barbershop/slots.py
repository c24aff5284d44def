# barbershop/slots.py

"""Slot availability engine.

``compute_available_slots`` is a pure function over minute intervals; the
``*_for_date`` helpers load the business window and busy intervals for a
calendar day from the store and feed them to it.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlmodel import Session, select, col

from barbershop.config import shop_settings
from barbershop.core import day_of_week, format_time, overlaps, parse_time
from barbershop.models import Appointment, Schedule, Unavailability

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]

# statuses that occupy the chair
BUSY_STATUSES = ("pending", "confirmed", "completed")


def compute_available_slots(
    window: Optional[Interval],
    busy: Sequence[Interval],
    slot_minutes: int = 30,
    duration: Optional[int] = None,
) -> List[str]:
    """Walk the business window and return the bookable start times.

    Args:
        window: (open, close) in minutes since midnight, or None when closed.
        busy: intervals already taken (appointments and unavailabilities).
        slot_minutes: step between candidate start times.
        duration: length of the interval that must fit at each start.
            Defaults to one slot.

    A candidate [t, t + duration) is kept when it ends at or before close
    and overlaps none of the busy intervals.
    """
    if window is None:
        return []
    open_at, close_at = window
    length = duration or slot_minutes

    available = []
    current = open_at
    while current + length <= close_at:
        if not intervals_conflict(current, current + length, busy):
            available.append(format_time(current))
        current += slot_minutes
    return available


def intervals_conflict(start: int, end: int, busy: Sequence[Interval]) -> bool:
    for busy_start, busy_end in busy:
        if overlaps(start, end, busy_start, busy_end):
            return True
    return False


def business_window(session: Session, day: date) -> Optional[Schedule]:
    return session.exec(
        select(Schedule)
        .where(Schedule.day_of_week == day_of_week(day))
        .where(Schedule.is_active == True)  # noqa: E712
        .order_by(Schedule.start_time)
    ).first()


def active_unavailabilities(session: Session, day: date) -> List[Unavailability]:
    return session.exec(
        select(Unavailability)
        .where(Unavailability.date == day)
        .where(Unavailability.is_active == True)  # noqa: E712
        .order_by(Unavailability.start_time)
    ).all()


def booked_appointments(
    session: Session, day: date, exclude_id: Optional[int] = None
) -> List[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.date == day)
        .where(col(Appointment.status).in_(BUSY_STATUSES))
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return session.exec(stmt.order_by(Appointment.start_time)).all()


def busy_intervals(session: Session, day: date) -> List[Interval]:
    busy = [
        (parse_time(a.start_time), parse_time(a.end_time))
        for a in booked_appointments(session, day)
    ]
    busy.extend(
        (parse_time(u.start_time), parse_time(u.end_time))
        for u in active_unavailabilities(session, day)
    )
    return busy


def available_slots_for_date(
    session: Session, day: date, duration: Optional[int] = None
) -> List[str]:
    schedule = business_window(session, day)
    if schedule is None:
        logger.debug("No active schedule for %s (weekday %s)", day, day_of_week(day))
        return []

    window = (parse_time(schedule.start_time), parse_time(schedule.end_time))
    return compute_available_slots(
        window,
        busy_intervals(session, day),
        slot_minutes=shop_settings["slot_minutes"],
        duration=duration,
    )


def find_conflicts(
    session: Session,
    day: date,
    start_time: str,
    duration: int,
    exclude_id: Optional[int] = None,
) -> List[Appointment]:
    start = parse_time(start_time)
    end = start + duration
    return [
        a
        for a in booked_appointments(session, day, exclude_id=exclude_id)
        if overlaps(start, end, parse_time(a.start_time), parse_time(a.end_time))
    ]


def check_conflict(session: Session, day: date, start_time: str, duration: int) -> bool:
    return bool(find_conflicts(session, day, start_time, duration))


def covered_minutes(window: Interval, blocks: Sequence[Interval]) -> int:
    """Minutes of ``window`` covered by the union of ``blocks``."""
    open_at, close_at = window
    clipped = sorted(
        (max(start, open_at), min(end, close_at))
        for start, end in blocks
        if overlaps(start, end, open_at, close_at)
    )

    total = 0
    last_end = open_at
    for start, end in clipped:
        start = max(start, last_end)
        if start < end:
            total += end - start
            last_end = end
    return total


def check_date(session: Session, day: date) -> dict:
    schedule = business_window(session, day)
    unavailabilities = active_unavailabilities(session, day)

    completely_blocked = False
    has_slots = False
    if schedule is not None:
        window = (parse_time(schedule.start_time), parse_time(schedule.end_time))
        blocks = [(parse_time(u.start_time), parse_time(u.end_time)) for u in unavailabilities]
        covered = covered_minutes(window, blocks)
        completely_blocked = covered >= (window[1] - window[0]) * shop_settings["blocked_day_ratio"]
        if not completely_blocked:
            has_slots = bool(available_slots_for_date(session, day))

    return {
        "is_working_day": schedule is not None,
        "has_unavailability": bool(unavailabilities),
        "is_completely_blocked": completely_blocked,
        "has_available_slots": has_slots,
        "unavailabilities": [
            {"start_time": u.start_time, "end_time": u.end_time, "reason": u.reason}
            for u in unavailabilities
        ],
    }
