from datetime import timedelta

from yogastudio.clients.models import UserSubscription
from yogastudio.staff.models import UserRole

from tests.factories import (
    auth_headers,
    make_class_session,
    make_profile,
    make_subscription,
    reload,
    set_window,
)


async def test_sell_book_and_cancel(seed, client):
    admin = await make_profile(seed, first_name="Admin", phone="77000000000", role=UserRole.admin)
    member = await make_profile(seed)
    class_session = await make_class_session(seed, starts_in=timedelta(days=1), capacity=5)

    plan = await client.post(
        "/api/v1/admin/plans/",
        json={"name": "8 visits", "price": "40000", "visits_count": 8, "duration_days": 30},
        headers=auth_headers(admin),
    )
    assert plan.status_code == 201

    sold = await client.post(
        "/api/v1/admin/subscriptions/",
        json={"user_id": member.id, "plan_id": plan.json()["id"]},
        headers=auth_headers(admin),
    )
    assert sold.status_code == 201
    assert sold.json()["visits_remaining"] == 8
    assert sold.json()["status"] == "active"
    assert sold.json()["client_phone"] == "77010000001"

    booked = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )
    assert booked.status_code == 201
    booking = booked.json()
    assert booking["status"] == "booked"
    subscription = await reload(seed, UserSubscription, sold.json()["id"])
    assert subscription.visits_remaining == 7

    day = (class_session.start_time).date().isoformat()
    schedule = await client.get(
        f"/api/v1/portal/schedule?day={day}", headers=auth_headers(member)
    )
    assert schedule.status_code == 200
    entry = next(s for s in schedule.json()["sessions"] if s["id"] == class_session.id)
    assert entry["seats_left"] == 4
    assert entry["is_booked_by_me"] is True
    assert schedule.json()["cancellation_minutes"] == 60

    cancelled = await client.post(
        f"/api/v1/portal/bookings/{booking['id']}/cancel", headers=auth_headers(member)
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["credited"] is True
    assert cancelled.json()["booking"]["status"] == "cancelled"
    subscription = await reload(seed, UserSubscription, sold.json()["id"])
    assert subscription.visits_remaining == 8


async def test_booking_conflicts_answer_409(seed, client):
    member = await make_profile(seed)
    class_session = await make_class_session(seed, capacity=1)

    no_sub = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )
    assert no_sub.status_code == 409
    assert no_sub.json()["error"] == "NO_ACTIVE_SUBSCRIPTION"

    await make_subscription(seed, member)
    first = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )
    assert first.status_code == 201

    again = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )
    assert again.status_code == 409
    assert again.json()["error"] in ("SESSION_FULL", "DUPLICATE_BOOKING")


async def test_unknown_session_is_404(seed, client):
    member = await make_profile(seed)
    await make_subscription(seed, member)

    response = await client.post(
        "/api/v1/portal/bookings", json={"session_id": 999}, headers=auth_headers(member)
    )

    assert response.status_code == 404


async def test_late_cancel_blocked_for_client_but_forced_by_staff(seed, client):
    admin = await make_profile(seed, first_name="Admin", phone="77000000000", role=UserRole.admin)
    member = await make_profile(seed)
    subscription = await make_subscription(seed, member, visits_total=10)
    class_session = await make_class_session(seed, starts_in=timedelta(minutes=30))
    await set_window(seed, 90)

    booked = await client.post(
        "/api/v1/admin/attendance/bookings",
        json={"session_id": class_session.id, "user_id": member.id},
        headers=auth_headers(admin),
    )
    assert booked.status_code == 201
    booking_id = booked.json()["id"]

    late = await client.post(
        f"/api/v1/portal/bookings/{booking_id}/cancel", headers=auth_headers(member)
    )
    assert late.status_code == 409
    assert late.json()["error"] == "CANCELLATION_WINDOW"
    assert late.json()["details"]["window_minutes"] == 90

    unforced = await client.put(
        f"/api/v1/admin/attendance/bookings/{booking_id}/status",
        json={"status": "cancelled"},
        headers=auth_headers(admin),
    )
    assert unforced.status_code == 409

    forced = await client.put(
        f"/api/v1/admin/attendance/bookings/{booking_id}/status",
        json={"status": "cancelled", "force": True},
        headers=auth_headers(admin),
    )
    assert forced.status_code == 200
    assert forced.json()["status"] == "cancelled"
    stored = await reload(seed, UserSubscription, subscription.id)
    assert stored.visits_remaining == 10


async def test_cancel_other_clients_booking_forbidden(seed, client):
    owner = await make_profile(seed, phone="77010000001")
    other = await make_profile(seed, first_name="Bella", phone="77010000002")
    await make_subscription(seed, owner)
    class_session = await make_class_session(seed)

    booked = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(owner),
    )

    response = await client.post(
        f"/api/v1/portal/bookings/{booked.json()['id']}/cancel", headers=auth_headers(other)
    )
    assert response.status_code == 403


async def test_attendance_report_lists_attendees(seed, client):
    admin = await make_profile(seed, first_name="Admin", phone="77000000000", role=UserRole.admin)
    member = await make_profile(seed)
    await make_subscription(seed, member)
    class_session = await make_class_session(seed, starts_in=timedelta(hours=5))

    await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )

    start = class_session.start_time - timedelta(hours=1)
    end = class_session.start_time + timedelta(hours=2)
    response = await client.get(
        "/api/v1/admin/attendance/",
        params={"date_from": start.isoformat(), "date_to": end.isoformat()},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert [s["id"] for s in sessions] == [class_session.id]
    attendees = sessions[0]["attendees"]
    assert len(attendees) == 1
    assert attendees[0]["client"]["id"] == member.id
    assert attendees[0]["status"] == "booked"


async def test_portal_home_and_profile(seed, client):
    member = await make_profile(seed)
    await make_subscription(seed, member, visits_total=8, visits_remaining=3)

    home = await client.get("/api/v1/portal/home", headers=auth_headers(member))
    assert home.status_code == 200
    assert home.json()["profile"]["id"] == member.id
    assert home.json()["subscriptions"][0]["visits_remaining"] == 3

    profile = await client.get("/api/v1/portal/profile", headers=auth_headers(member))
    assert profile.status_code == 200
    assert profile.json()["bookings"] == []
