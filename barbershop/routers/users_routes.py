# barbershop/routers/users_routes.py

from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, func

from barbershop.db import get_session
from barbershop.models import User
from barbershop.schemas import UserPublic, UserStats, UserUpdate
from barbershop.deps import get_current_admin
from barbershop.seed import normalize_phone

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


def _count(session: Session, *conditions) -> int:
    stmt = select(func.count()).select_from(User)
    for condition in conditions:
        stmt = stmt.where(condition)
    return session.exec(stmt).one()


@router.get("", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return session.exec(select(User).order_by(User.created_at.desc())).all()


# registered before /{user_id} so "stats" is not parsed as an id
@router.get("/stats/overview", response_model=UserStats)
def user_stats(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    total = _count(session)
    active = _count(session, User.is_active == True)  # noqa: E712
    return {
        "total_users": total,
        "active_users": active,
        "admin_users": _count(session, User.role == "admin"),
        "recent_users": _count(session, User.created_at >= datetime.now() - timedelta(days=30)),
        "inactive_users": total - active,
    }


@router.get("/{user_id}", response_model=UserPublic)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_user = session.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user


@router.put("/{user_id}", response_model=UserPublic)
def update_user(
    user_id: int,
    update: UserUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_user = session.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    changes = update.model_dump(exclude_unset=True)
    if "email" in changes and changes["email"] is not None:
        email = changes["email"].strip().lower()
        taken = session.exec(
            select(User).where(User.email == email).where(User.id != user_id)
        ).first()
        if taken is not None:
            raise HTTPException(status_code=400, detail="A user with this email already exists")
        changes["email"] = email
    if "phone" in changes and changes["phone"] is not None:
        changes["phone"] = normalize_phone(changes["phone"])
    if "role" in changes and changes["role"] is not None:
        changes["role"] = changes["role"].value

    for field, value in changes.items():
        if value is not None:
            setattr(db_user, field, value)

    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user


@router.delete("/{user_id}", response_model=UserPublic)
def deactivate_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    if user_id == admin["id"]:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    db_user = session.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    db_user.is_active = False
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user
