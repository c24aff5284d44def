# barbershop/routers/schedules_routes.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Schedule as ScheduleModel, Unavailability as UnavailabilityModel
from barbershop.schemas import (
    ScheduleCreate,
    SchedulePublic,
    ScheduleUpdate,
    UnavailabilityCreate,
    UnavailabilityPublic,
    UnavailabilityUpdate,
)
from barbershop.core import local_now, overlaps, parse_time
from barbershop.deps import get_current_admin
from barbershop.slots import booked_appointments

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["schedules"],
)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _active_schedule_for_day(
    session: Session, day_of_week: int, exclude_id: Optional[int] = None
) -> Optional[ScheduleModel]:
    stmt = (
        select(ScheduleModel)
        .where(ScheduleModel.day_of_week == day_of_week)
        .where(ScheduleModel.is_active == True)  # noqa: E712
    )
    if exclude_id is not None:
        stmt = stmt.where(ScheduleModel.id != exclude_id)
    return session.exec(stmt).first()


def _schedule_or_404(session: Session, schedule_id: int) -> ScheduleModel:
    schedule = session.get(ScheduleModel, schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


def _unavailability_or_404(session: Session, unavailability_id: int) -> UnavailabilityModel:
    unavailability = session.get(UnavailabilityModel, unavailability_id)
    if unavailability is None:
        raise HTTPException(status_code=404, detail="Unavailability not found")
    return unavailability


# ---------- Business hours ----------

@router.get("/schedules", response_model=List[SchedulePublic])
def list_schedules(session: Session = Depends(get_session)):
    return session.exec(
        select(ScheduleModel)
        .where(ScheduleModel.is_active == True)  # noqa: E712
        .order_by(ScheduleModel.day_of_week, ScheduleModel.start_time)
    ).all()


@router.get("/schedules/admin", response_model=List[SchedulePublic])
def list_all_schedules(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return session.exec(
        select(ScheduleModel).order_by(ScheduleModel.day_of_week, ScheduleModel.start_time)
    ).all()


@router.post("/schedules", response_model=SchedulePublic, status_code=201)
def create_schedule(
    schedule: ScheduleCreate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    # one business window per weekday
    existing = _active_schedule_for_day(session, schedule.day_of_week)
    if existing is not None:
        raise HTTPException(
            status_code=400,
            detail=(
                f"{DAY_NAMES[schedule.day_of_week]} already has business hours "
                f"({existing.start_time} - {existing.end_time})"
            ),
        )

    db_schedule = ScheduleModel(
        day_of_week=schedule.day_of_week,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
    )
    session.add(db_schedule)
    session.commit()
    session.refresh(db_schedule)
    logger.info(
        "Business hours for %s set to %s - %s",
        DAY_NAMES[db_schedule.day_of_week], db_schedule.start_time, db_schedule.end_time,
    )
    return db_schedule


@router.put("/schedules/{schedule_id}", response_model=SchedulePublic)
def update_schedule(
    schedule_id: int,
    update: ScheduleUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_schedule = _schedule_or_404(session, schedule_id)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)

    day_of_week = changes.get("day_of_week", db_schedule.day_of_week)
    start_time = changes.get("start_time", db_schedule.start_time)
    end_time = changes.get("end_time", db_schedule.end_time)
    is_active = changes.get("is_active", db_schedule.is_active)

    if parse_time(start_time) >= parse_time(end_time):
        raise HTTPException(status_code=400, detail="startTime must be earlier than endTime")

    if is_active:
        existing = _active_schedule_for_day(session, day_of_week, exclude_id=schedule_id)
        if existing is not None:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"{DAY_NAMES[day_of_week]} already has business hours "
                    f"({existing.start_time} - {existing.end_time})"
                ),
            )

    for field, value in changes.items():
        setattr(db_schedule, field, value)

    session.add(db_schedule)
    session.commit()
    session.refresh(db_schedule)
    return db_schedule


@router.delete("/schedules/{schedule_id}", response_model=SchedulePublic)
def deactivate_schedule(
    schedule_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_schedule = _schedule_or_404(session, schedule_id)
    db_schedule.is_active = False
    session.add(db_schedule)
    session.commit()
    session.refresh(db_schedule)
    return db_schedule


@router.delete("/schedules/{schedule_id}/permanent", response_model=SchedulePublic)
def delete_schedule(
    schedule_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_schedule = _schedule_or_404(session, schedule_id)
    payload = SchedulePublic.model_validate(db_schedule)
    session.delete(db_schedule)
    session.commit()
    return payload


# ---------- Unavailabilities ----------

@router.get("/unavailabilities", response_model=List[UnavailabilityPublic])
def list_unavailabilities(
    date: Optional[date] = None,
    session: Session = Depends(get_session),
):
    stmt = select(UnavailabilityModel).where(UnavailabilityModel.is_active == True)  # noqa: E712
    if date is not None:
        stmt = stmt.where(UnavailabilityModel.date == date)
    else:
        # upcoming only
        stmt = stmt.where(UnavailabilityModel.date >= local_now().date())
    return session.exec(
        stmt.order_by(UnavailabilityModel.date, UnavailabilityModel.start_time)
    ).all()


@router.get("/unavailabilities/admin", response_model=List[UnavailabilityPublic])
def list_all_unavailabilities(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return session.exec(
        select(UnavailabilityModel).order_by(UnavailabilityModel.date, UnavailabilityModel.start_time)
    ).all()


@router.post("/unavailabilities", response_model=UnavailabilityPublic, status_code=201)
def create_unavailability(
    unavailability: UnavailabilityCreate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    if unavailability.date < local_now().date():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    db_unavailability = UnavailabilityModel(
        date=unavailability.date,
        start_time=unavailability.start_time,
        end_time=unavailability.end_time,
        reason=unavailability.reason,
    )
    session.add(db_unavailability)
    session.commit()
    session.refresh(db_unavailability)

    # existing bookings are kept; staff decides what to do with them
    start, end = parse_time(db_unavailability.start_time), parse_time(db_unavailability.end_time)
    clashes = [
        a.id
        for a in booked_appointments(session, db_unavailability.date)
        if overlaps(start, end, parse_time(a.start_time), parse_time(a.end_time))
    ]
    if clashes:
        logger.warning(
            "Unavailability %s on %s overlaps booked appointments %s",
            db_unavailability.id, db_unavailability.date, clashes,
        )
    return db_unavailability


@router.put("/unavailabilities/{unavailability_id}", response_model=UnavailabilityPublic)
def update_unavailability(
    unavailability_id: int,
    update: UnavailabilityUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_unavailability = _unavailability_or_404(session, unavailability_id)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)

    start_time = changes.get("start_time", db_unavailability.start_time)
    end_time = changes.get("end_time", db_unavailability.end_time)
    if parse_time(start_time) >= parse_time(end_time):
        raise HTTPException(status_code=400, detail="startTime must be earlier than endTime")

    for field, value in changes.items():
        setattr(db_unavailability, field, value)

    session.add(db_unavailability)
    session.commit()
    session.refresh(db_unavailability)
    return db_unavailability


@router.delete("/unavailabilities/{unavailability_id}", response_model=UnavailabilityPublic)
def deactivate_unavailability(
    unavailability_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_unavailability = _unavailability_or_404(session, unavailability_id)
    db_unavailability.is_active = False
    session.add(db_unavailability)
    session.commit()
    session.refresh(db_unavailability)
    return db_unavailability


@router.delete("/unavailabilities/{unavailability_id}/permanent", response_model=UnavailabilityPublic)
def delete_unavailability(
    unavailability_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_unavailability = _unavailability_or_404(session, unavailability_id)
    payload = UnavailabilityPublic.model_validate(db_unavailability)
    session.delete(db_unavailability)
    session.commit()
    return payload
