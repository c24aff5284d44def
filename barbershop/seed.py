# barbershop/seed.py

"""Startup data steps. Each one is safe to run on every boot."""

import logging
import re

from sqlmodel import Session, select

from barbershop.auth import hash_password
from barbershop.config import default_admin
from barbershop.models import User

logger = logging.getLogger(__name__)


def normalize_phone(phone: str) -> str:
    # keep digits only: "(11) 99999-9999" -> "11999999999"
    return re.sub(r"\D", "", phone or "")


def create_default_admin(session: Session) -> bool:
    """Insert the default admin account unless an admin already exists.

    An account already holding the configured admin email is left alone,
    whatever its role. Returns True when an account was created.
    """
    existing = session.exec(select(User).where(User.role == "admin")).first()
    if existing is not None:
        logger.info("Admin user already exists (%s)", existing.email)
        return False

    taken = session.exec(select(User).where(User.email == default_admin["email"])).first()
    if taken is not None:
        logger.warning(
            "No admin account exists but %s is registered with role %r; not seeding",
            taken.email, taken.role,
        )
        return False

    admin = User(
        name=default_admin["name"],
        email=default_admin["email"],
        phone=normalize_phone(default_admin["phone"]),
        password_hash=hash_password(default_admin["password"]),
        role="admin",
    )
    session.add(admin)
    session.commit()
    logger.warning(
        "Created default admin %s; change its password after the first login",
        admin.email,
    )
    return True


def normalize_phones(session: Session) -> int:
    """Rewrite every stored phone number to digits only. Returns the number changed."""
    changed = 0
    for user in session.exec(select(User)).all():
        normalized = normalize_phone(user.phone)
        if normalized != user.phone:
            logger.info("Normalized phone for %s: %r -> %r", user.email, user.phone, normalized)
            user.phone = normalized
            session.add(user)
            changed += 1
    session.commit()
    return changed


if __name__ == "__main__":
    from barbershop.db import create_db_and_tables, engine

    logging.basicConfig(level=logging.INFO)
    create_db_and_tables()
    with Session(engine) as session:
        count = normalize_phones(session)
    logger.info("Phone normalization finished, %d users updated", count)
