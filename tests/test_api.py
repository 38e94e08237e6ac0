from reservations.core.config import settings
from conftest import ADMIN_USERNAME, next_weekday

API = settings.API_V1_STR


def _booking_payload(**overrides):
    payload = {
        "event_date": next_weekday().isoformat(),
        "seat_labels": ["a1"],
        "name": "Ada Obi",
        "email": "Ada@Example.com",
        "phone": "+2348012345678",
        "gender": "female",
        "age_range": "26-35",
        "agree_to_terms": True,
    }
    payload.update(overrides)
    return payload


def _initiate(client, **overrides):
    started = client.post(f"{API}/bookings/initiate", json=_booking_payload(**overrides))
    assert started.status_code == 200, started.text
    return started.json()["data"]


def _verify(client, notifier, pending, email="ada@example.com"):
    return client.post(
        f"{API}/bookings/verify",
        json={
            "email": email,
            "otp": notifier.last_otp(email),
            "temp_id": pending["temp_id"],
            "reservation_token": pending["reservation_token"],
        },
    )


def _book(client, notifier, email="ada@example.com", **overrides):
    pending = _initiate(client, email=email, **overrides)
    verified = _verify(client, notifier, pending, email=email)
    assert verified.status_code == 201, verified.text
    return verified.json()["data"]


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Public booking flow
# ---------------------------------------------------------------------------


def test_two_phase_booking_over_http(client, notifier):
    started = client.post(f"{API}/bookings/initiate", json=_booking_payload())
    body = started.json()
    assert started.status_code == 200
    assert body["success"] is True
    assert body["data"]["requires_otp"] is True
    assert "error" not in body

    verified = _verify(client, notifier, body["data"])
    assert verified.status_code == 201, verified.text
    ticket = verified.json()["data"]
    assert ticket["seat_labels"] == ["A1"]
    assert ticket["status"] == "attending"
    assert ticket["qr_code"].startswith("data:image/png;base64,")


def test_wrong_code_is_a_bad_request(client, notifier):
    started = _initiate(client)
    code = notifier.last_otp("ada@example.com")
    response = client.post(
        f"{API}/bookings/verify",
        json={
            "email": "ada@example.com",
            "otp": "000000" if code != "000000" else "111111",
            "temp_id": started["temp_id"],
            "reservation_token": started["reservation_token"],
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "OTP_MISMATCH"


def test_unknown_pending_booking_is_not_found(client):
    response = client.post(
        f"{API}/bookings/verify",
        json={"email": "ghost@example.com", "otp": "123456", "temp_id": "nope", "reservation_token": "x"},
    )
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_terms_must_be_accepted(client):
    response = client.post(f"{API}/bookings/initiate", json=_booking_payload(agree_to_terms=False))
    assert response.status_code == 422


def test_seat_map_endpoint(client, notifier):
    show = next_weekday()
    _book(client, notifier, event_date=show.isoformat(), seat_labels=["B2"])

    response = client.get(f"{API}/bookings/seats/{show.isoformat()}")
    data = response.json()["data"]
    assert response.status_code == 200
    assert data["total_seats"] == settings.DEFAULT_TOTAL_SEATS
    assert data["booked_seats"] == 1
    assert [s["label"] for s in data["booked_seat_list"]] == ["B2"]


def test_resend_and_cancel_over_http(client, notifier):
    _initiate(client)
    resent = client.post(f"{API}/bookings/resend-otp", json={"email": "ada@example.com"})
    assert resent.status_code == 200, resent.text
    assert "expires_at" in resent.json()["data"]

    ticket = _book(client, notifier, email="cara@example.com", seat_labels=["D1"])
    cancelled = client.post(
        f"{API}/bookings/cancel",
        json={"ticket_id": ticket["ticket_id"], "reservation_token": ticket["reservation_token"]},
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["status"] == "cancelled"


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def test_admin_routes_need_a_token(client):
    assert client.get(f"{API}/admin/bookings/").status_code == 401
    assert client.get(f"{API}/admin/settings/").status_code == 401


def test_bad_password(client, admin_headers):
    response = client.post(f"{API}/auth/login", data={"username": ADMIN_USERNAME, "password": "wrong"})
    assert response.status_code == 401


def test_me(client, admin_headers):
    me = client.get(f"{API}/auth/me", headers=admin_headers).json()
    assert me["username"] == ADMIN_USERNAME
    assert me["last_login"] is not None


def test_settings_round_trip(client, admin_headers):
    current = client.get(f"{API}/admin/settings/", headers=admin_headers)
    assert current.status_code == 200
    assert current.json()["data"]["max_seats_per_user"] == settings.MAX_SEATS_PER_USER

    updated = client.put(f"{API}/admin/settings/", headers=admin_headers, json={"max_seats_per_user": 4})
    assert updated.status_code == 200
    assert updated.json()["data"]["max_seats_per_user"] == 4

    invalid = client.put(f"{API}/admin/settings/", headers=admin_headers, json={"working_days": [0]})
    assert invalid.status_code == 422


def test_event_crud(client, admin_headers):
    show = next_weekday(offset_days=10).isoformat()
    created = client.post(
        f"{API}/admin/events/",
        headers=admin_headers,
        json={"event_date": show, "start_time": "17:00", "total_seats": 30},
    )
    assert created.status_code == 201, created.text
    event_id = created.json()["data"]["id"]

    duplicate = client.post(
        f"{API}/admin/events/",
        headers=admin_headers,
        json={"event_date": show, "start_time": "17:00", "total_seats": 30},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "DUPLICATE_EVENT"

    updated = client.put(f"{API}/admin/events/{event_id}", headers=admin_headers, json={"total_seats": 35})
    assert updated.json()["data"]["available_seats"] == 35

    listed = client.get(f"{API}/admin/events/", headers=admin_headers).json()
    assert listed["meta"]["total"] == 1

    assert client.delete(f"{API}/admin/events/{event_id}", headers=admin_headers).status_code == 200
    missing = client.get(f"{API}/admin/events/{event_id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "EVENT_NOT_FOUND"


def test_admin_booking_lookups(client, notifier, admin_headers):
    ticket = _book(client, notifier)

    found = client.get(f"{API}/admin/bookings/", headers=admin_headers, params={"search": "ada"}).json()
    assert [b["ticket_id"] for b in found["data"]] == [ticket["ticket_id"]]
    assert "reservation_token" not in found["data"][0]

    one = client.get(f"{API}/admin/bookings/{ticket['ticket_id']}", headers=admin_headers)
    assert one.status_code == 200

    missing = client.patch(f"{API}/admin/registrations/NOPE1234/checkin", headers=admin_headers)
    assert missing.status_code == 404

    voided = client.patch(f"{API}/admin/registrations/{ticket['ticket_id']}/void", headers=admin_headers)
    assert voided.json()["data"]["status"] == "voided"

    stats = client.get(f"{API}/admin/registrations/stats", headers=admin_headers).json()["data"]
    assert stats["held_seats"] == 0
