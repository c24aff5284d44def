import os

# must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@test.local"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from barbershop import models  # noqa: F401
from barbershop.db import engine
from barbershop.main import app
from barbershop.models import Appointment, Schedule, Service, Unavailability, User
from barbershop.auth import hash_password


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    # entering the context runs startup, which seeds the default admin
    with TestClient(app) as client:
        yield client


def login(client, email, password):
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin@test.local", "admin-password")


@pytest.fixture
def customer(session):
    user = User(
        name="Carlos",
        email="carlos@test.local",
        phone="11988887777",
        password_hash=hash_password("customer-pass"),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer_headers(client, customer):
    return login(client, "carlos@test.local", "customer-pass")


def next_weekday(day_of_week, start=None):
    """First date at least a week out whose weekday (0=Sunday) matches."""
    day = (start or date.today()) + timedelta(days=7)
    while (day.weekday() + 1) % 7 != day_of_week:
        day += timedelta(days=1)
    return day


@pytest.fixture
def monday():
    return next_weekday(1)


@pytest.fixture
def open_monday(session, monday):
    session.add(Schedule(day_of_week=1, start_time="09:00", end_time="18:00"))
    session.commit()
    return monday


@pytest.fixture
def haircut(session):
    service = Service(
        name="Haircut",
        description="Classic scissor cut",
        duration=30,
        price=35.0,
        category="haircut",
    )
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def combo(session):
    service = Service(
        name="Cut and beard",
        description="Haircut with beard trim",
        duration=60,
        price=55.0,
        category="combo",
    )
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture
def add_appointment(session, customer, haircut):
    def _add(day, start_time, end_time, status="confirmed"):
        appt = Appointment(
            user_id=customer.id,
            service_id=haircut.id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=status,
            total_price=haircut.price,
        )
        session.add(appt)
        session.commit()
        session.refresh(appt)
        return appt

    return _add


@pytest.fixture
def add_unavailability(session):
    def _add(day, start_time, end_time, reason="Closed", is_active=True):
        block = Unavailability(
            date=day,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
            is_active=is_active,
        )
        session.add(block)
        session.commit()
        session.refresh(block)
        return block

    return _add
