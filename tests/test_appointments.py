from datetime import date, datetime, timedelta

import pytest

from barbershop import booking
from barbershop.models import Appointment
from conftest import login


def book(client, headers, service, day, start_time, notes=None):
    payload = {"serviceId": service.id, "date": day.isoformat(), "startTime": start_time}
    if notes is not None:
        payload["notes"] = notes
    return client.post("/appointments", json=payload, headers=headers)


def slots(client, day, **params):
    response = client.get(f"/appointments/available-slots/{day.isoformat()}", params=params)
    assert response.status_code == 200, response.text
    return response.json()["availableSlots"]


@pytest.fixture
def other_headers(client):
    response = client.post(
        "/auth/register",
        json={"name": "Ana", "email": "ana@test.local", "password": "another-pass"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


# ---------- booking ----------

def test_booking_creates_pending_appointment(client, customer_headers, customer, haircut, open_monday):
    response = book(client, customer_headers, haircut, open_monday, "10:00", notes="Short on the sides")
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "pending"
    assert body["startTime"] == "10:00"
    assert body["endTime"] == "10:30"
    assert body["totalPrice"] == 35.0
    assert body["userId"] == customer.id
    assert body["notes"] == "Short on the sides"
    assert body["service"]["name"] == "Haircut"
    assert body["user"]["email"] == "carlos@test.local"


def test_end_time_follows_service_duration(client, customer_headers, combo, open_monday):
    response = book(client, customer_headers, combo, open_monday, "9:30")
    assert response.status_code == 201, response.text
    assert response.json()["startTime"] == "09:30"
    assert response.json()["endTime"] == "10:30"


def test_booked_slot_disappears_from_availability(client, customer_headers, haircut, open_monday):
    assert "10:00" in slots(client, open_monday)
    book(client, customer_headers, haircut, open_monday, "10:00")

    available = slots(client, open_monday)
    assert "10:00" not in available
    assert "09:30" in available
    assert "10:30" in available


def test_overlapping_booking_is_rejected(client, customer_headers, other_headers, haircut, combo, open_monday):
    assert book(client, customer_headers, combo, open_monday, "10:00").status_code == 201

    response = book(client, other_headers, haircut, open_monday, "10:30")
    assert response.status_code == 400
    assert "already booked" in response.json()["detail"]

    # back to back is fine
    assert book(client, other_headers, haircut, open_monday, "11:00").status_code == 201


def test_booking_past_close_is_rejected(client, customer_headers, haircut, open_monday):
    response = book(client, customer_headers, haircut, open_monday, "17:45")
    assert response.status_code == 400
    assert "business hours" in response.json()["detail"]

    # ending exactly at close is allowed
    assert book(client, customer_headers, haircut, open_monday, "17:30").status_code == 201


def test_booking_before_open_is_rejected(client, customer_headers, haircut, open_monday):
    response = book(client, customer_headers, haircut, open_monday, "08:45")
    assert response.status_code == 400


def test_booking_on_closed_day_is_rejected(client, customer_headers, haircut, monday):
    response = book(client, customer_headers, haircut, monday, "10:00")
    assert response.status_code == 400
    assert "closed" in response.json()["detail"]


def test_booking_during_unavailability_is_rejected(
    client, customer_headers, haircut, open_monday, add_unavailability
):
    add_unavailability(open_monday, "12:00", "13:00", reason="Lunch")
    response = book(client, customer_headers, haircut, open_monday, "12:30")
    assert response.status_code == 400
    assert "Lunch" in response.json()["detail"]


def test_booking_in_the_past_is_rejected(client, customer_headers, haircut):
    response = book(client, customer_headers, haircut, date.today() - timedelta(days=1), "10:00")
    assert response.status_code == 400
    assert "past" in response.json()["detail"]


def test_booking_unknown_or_inactive_service(client, session, customer_headers, haircut, open_monday):
    response = client.post(
        "/appointments",
        json={"serviceId": 999, "date": open_monday.isoformat(), "startTime": "10:00"},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert "Service" in response.json()["detail"]

    haircut.is_active = False
    session.add(haircut)
    session.commit()
    assert book(client, customer_headers, haircut, open_monday, "10:00").status_code == 400


def test_booking_with_malformed_time(client, customer_headers, haircut, open_monday):
    response = book(client, customer_headers, haircut, open_monday, "25:00")
    assert response.status_code == 422


def test_booking_requires_authentication(client, haircut, open_monday):
    response = book(client, {}, haircut, open_monday, "10:00")
    assert response.status_code == 401


def test_booking_rechecks_conflicts_right_before_insert(
    client, customer_headers, haircut, open_monday, add_appointment, monkeypatch
):
    # another request books the slot between validation and insert
    real_find = booking.find_conflicts

    def racing_find(session, day, start_time, duration, exclude_id=None):
        add_appointment(open_monday, "10:00", "10:30", status="pending")
        return real_find(session, day, start_time, duration, exclude_id=exclude_id)

    monkeypatch.setattr(booking, "find_conflicts", racing_find)
    response = book(client, customer_headers, haircut, open_monday, "10:00")
    assert response.status_code == 400
    assert "already booked" in response.json()["detail"]


# ---------- availability endpoints ----------

def test_available_slots_for_closed_day(client, monday):
    assert slots(client, monday) == []


def test_available_slots_with_service_duration(client, combo, open_monday, add_appointment):
    add_appointment(open_monday, "12:00", "12:30")
    available = slots(client, open_monday, serviceId=combo.id)
    assert "11:30" not in available
    assert "11:00" in available
    assert available[-1] == "17:00"


def test_available_slots_unknown_service(client, open_monday):
    response = client.get(f"/appointments/available-slots/{open_monday.isoformat()}?serviceId=999")
    assert response.status_code == 400


def test_full_day_closure_returns_no_slots(client, open_monday, add_unavailability):
    add_unavailability(open_monday, "09:00", "18:00", reason="Holiday")
    assert slots(client, open_monday) == []


def test_check_date_endpoint(client, open_monday, add_unavailability):
    add_unavailability(open_monday, "12:00", "13:00", reason="Lunch")
    response = client.get(f"/appointments/check-date/{open_monday.isoformat()}")
    assert response.status_code == 200
    body = response.json()
    assert body["isWorkingDay"] is True
    assert body["hasUnavailability"] is True
    assert body["isCompletelyBlocked"] is False
    assert body["hasAvailableSlots"] is True
    assert body["unavailabilities"] == [{"startTime": "12:00", "endTime": "13:00", "reason": "Lunch"}]


# ---------- cancellation ----------

def test_cancel_frees_the_slot(client, customer_headers, haircut, open_monday):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    assert "10:00" not in slots(client, open_monday)

    response = client.patch(
        f"/appointments/{appt_id}/cancel", json={"reason": "Travelling"}, headers=customer_headers
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "cancelled"
    assert "Cancellation reason: Travelling" in response.json()["notes"]
    assert "10:00" in slots(client, open_monday)


def test_cancel_twice_is_rejected(client, customer_headers, haircut, open_monday):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    assert client.delete(f"/appointments/{appt_id}", headers=customer_headers).status_code == 200

    response = client.delete(f"/appointments/{appt_id}", headers=customer_headers)
    assert response.status_code == 400
    assert "already cancelled" in response.json()["detail"]


def test_customer_cannot_cancel_someone_elses_booking(
    client, customer_headers, other_headers, haircut, open_monday
):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    response = client.delete(f"/appointments/{appt_id}", headers=other_headers)
    assert response.status_code == 404


def test_cancel_unknown_appointment(client, customer_headers):
    assert client.delete("/appointments/999", headers=customer_headers).status_code == 404


def test_late_cancellation_needs_the_shop(
    client, customer_headers, admin_headers, haircut, open_monday, monkeypatch
):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]

    # one hour before the appointment
    monkeypatch.setattr(booking, "local_now", lambda: datetime.combine(open_monday, datetime.min.time()) + timedelta(hours=9))
    response = client.delete(f"/appointments/{appt_id}", headers=customer_headers)
    assert response.status_code == 400
    assert "2 hours" in response.json()["detail"]

    response = client.delete(f"/appointments/{appt_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_completed_appointment_cannot_be_cancelled(client, customer_headers, admin_headers, haircut, open_monday):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    assert client.patch(f"/appointments/{appt_id}/complete", headers=admin_headers).status_code == 200

    response = client.delete(f"/appointments/{appt_id}", headers=admin_headers)
    assert response.status_code == 400


# ---------- status changes and listings ----------

def test_admin_status_transitions(client, customer_headers, admin_headers, haircut, open_monday):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]

    response = client.patch(f"/appointments/{appt_id}/confirm", headers=admin_headers)
    assert response.json()["status"] == "confirmed"

    response = client.patch(
        f"/appointments/{appt_id}/status", json={"status": "completed"}, headers=admin_headers
    )
    assert response.json()["status"] == "completed"

    response = client.patch(
        f"/appointments/{appt_id}/status", json={"status": "finished"}, headers=admin_headers
    )
    assert response.status_code == 422


def test_customers_cannot_change_status(client, customer_headers, haircut, open_monday):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    response = client.patch(f"/appointments/{appt_id}/confirm", headers=customer_headers)
    assert response.status_code == 403


def test_status_change_on_unknown_appointment(client, admin_headers):
    assert client.patch("/appointments/999/confirm", headers=admin_headers).status_code == 404


def test_listings(client, customer_headers, other_headers, admin_headers, haircut, open_monday):
    book(client, customer_headers, haircut, open_monday, "11:00")
    book(client, other_headers, haircut, open_monday, "10:00")

    mine = client.get("/appointments/my-appointments", headers=customer_headers).json()
    assert [a["startTime"] for a in mine] == ["11:00"]

    everything = client.get("/appointments", headers=admin_headers).json()
    assert [a["startTime"] for a in everything] == ["10:00", "11:00"]

    filtered = client.get(
        "/appointments", params={"date": open_monday.isoformat(), "status": "cancelled"},
        headers=admin_headers,
    ).json()
    assert filtered == []

    assert client.get("/appointments", headers=customer_headers).status_code == 403


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_helper_rejects_bad_password(client, customer):
    response = client.post("/auth/login", data={"username": customer.email, "password": "wrong-pass"})
    assert response.status_code == 401
    assert login(client, customer.email, "customer-pass")


def test_restoring_cancelled_booking_over_a_new_one_is_rejected(
    client, customer_headers, other_headers, admin_headers, haircut, open_monday
):
    first = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    assert client.delete(f"/appointments/{first}", headers=customer_headers).status_code == 200
    assert book(client, other_headers, haircut, open_monday, "10:00").status_code == 201

    response = client.patch(
        f"/appointments/{first}/status", json={"status": "confirmed"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert "already booked" in response.json()["detail"]
    assert client.patch(f"/appointments/{first}/confirm", headers=admin_headers).status_code == 400

    day = client.get(
        "/appointments", params={"date": open_monday.isoformat()}, headers=admin_headers
    ).json()
    assert sorted(a["status"] for a in day) == ["cancelled", "pending"]


def test_restoring_cancelled_booking_into_a_free_slot(
    client, customer_headers, admin_headers, haircut, open_monday
):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    client.delete(f"/appointments/{appt_id}", headers=customer_headers)

    response = client.patch(f"/appointments/{appt_id}/confirm", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert "10:00" not in slots(client, open_monday)


def test_available_slots_for_inactive_service(client, session, haircut, open_monday):
    haircut.is_active = False
    session.add(haircut)
    session.commit()

    response = client.get(
        f"/appointments/available-slots/{open_monday.isoformat()}", params={"serviceId": haircut.id}
    )
    assert response.status_code == 400


def test_booking_locks_do_not_grow_with_dates():
    start = date(2030, 1, 1)
    for offset in range(500):
        with booking.booking_lock(start + timedelta(days=offset)):
            pass
    assert len(booking._date_locks) == booking._LOCK_STRIPES

    with booking.booking_lock(start):
        # same day maps to the same, already held, stripe
        lock = booking._date_locks[start.toordinal() % booking._LOCK_STRIPES]
        assert lock.locked()


def test_status_change_stamps_shop_clock(
    client, session, customer_headers, admin_headers, haircut, open_monday, monkeypatch
):
    appt_id = book(client, customer_headers, haircut, open_monday, "10:00").json()["id"]
    stamp = datetime.combine(open_monday, datetime.min.time()) + timedelta(hours=8)
    monkeypatch.setattr(booking, "local_now", lambda: stamp)

    assert client.patch(f"/appointments/{appt_id}/confirm", headers=admin_headers).status_code == 200
    session.expire_all()
    assert session.get(Appointment, appt_id).updated_at == stamp
