from datetime import datetime, time, timedelta, timezone

import pytest

from yogastudio.core.validations import utcnow
from yogastudio.clients.models import Booking, BookingStatus
from yogastudio.staff.models import ClassSession, Profile, UserRole

from tests.factories import (
    auth_headers,
    make_class_session,
    make_class_type,
    make_plan,
    make_profile,
    make_subscription,
    reload,
)


@pytest.fixture
async def admin(seed):
    return await make_profile(seed, first_name="Admin", phone="77000000000", role=UserRole.admin)


@pytest.fixture
def headers(admin):
    return auth_headers(admin)


async def test_lead_gets_default_password(client, headers):
    response = await client.post(
        "/api/v1/admin/trials/",
        json={"first_name": "Lena", "phone": "8 (701) 222-33-44", "notes": "Instagram"},
        headers=headers,
    )

    assert response.status_code == 201
    lead = response.json()
    assert lead["phone"] == "87012223344"
    assert lead["phone_display"] == "8 (701) 222-33-44"
    assert lead["lead_status"] == "booked"
    assert lead["role"] == "client"

    login = await client.post(
        "/api/v1/portal/auth/login",
        json={"phone": "87012223344", "password": "default-password"},
    )
    assert login.status_code == 200


async def test_lead_duplicate_phone(seed, client, headers):
    await make_profile(seed, phone="77012223344")

    response = await client.post(
        "/api/v1/admin/trials/",
        json={"first_name": "Lena", "phone": "+7 701 222 33 44"},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_ERROR"


async def test_lead_status_moves_freely(seed, client, headers):
    lead = await make_profile(seed, lead_status=None)

    for status in ("paid", "booked", "churned"):
        response = await client.put(
            f"/api/v1/admin/trials/{lead.id}/status",
            json={"lead_status": status},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["lead_status"] == status


async def test_invalid_lead_status(seed, client, headers):
    lead = await make_profile(seed)

    response = await client.put(
        f"/api/v1/admin/trials/{lead.id}/status",
        json={"lead_status": "vip"},
        headers=headers,
    )

    assert response.status_code == 422


async def test_cancellation_window_setting(client, headers):
    current = await client.get("/api/v1/admin/settings/", headers=headers)
    assert current.status_code == 200
    assert current.json()["cancellation_minutes"] == 60

    updated = await client.put(
        "/api/v1/admin/settings/cancellation",
        json={"cancellation_minutes": 120},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["cancellation_minutes"] == 120

    again = await client.get("/api/v1/admin/settings/", headers=headers)
    assert again.json()["cancellation_minutes"] == 120


async def test_negative_window_rejected(client, headers):
    response = await client.put(
        "/api/v1/admin/settings/cancellation",
        json={"cancellation_minutes": -5},
        headers=headers,
    )

    assert response.status_code == 422


async def test_studio_info(client, headers):
    response = await client.put(
        "/api/v1/admin/settings/studio",
        json={"name": "Balance", "phone": "+7 701 000 00 00"},
        headers=headers,
    )

    assert response.status_code == 200
    info = response.json()["studio_info"]
    assert info["name"] == "Balance"
    assert info["phone"] == "+7 701 000 00 00"
    assert info["address"] is None


async def test_create_session_and_week_schedule(seed, client, headers):
    hatha = await make_class_type(seed)
    monday = utcnow().date() - timedelta(days=utcnow().weekday())
    start = datetime.combine(monday, time(9, 0), tzinfo=timezone.utc)

    created = await client.post(
        "/api/v1/admin/schedule/",
        json={
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
            "capacity": 12,
            "class_type_id": hatha.id,
        },
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["class_type"]["name"] == "Hatha"

    week = await client.get(
        "/api/v1/admin/schedule/", params={"week_start": monday.isoformat()}, headers=headers
    )
    assert week.status_code == 200
    assert [s["id"] for s in week.json()] == [created.json()["id"]]


async def test_session_end_before_start_rejected(client, headers):
    start = utcnow() + timedelta(days=1)

    response = await client.post(
        "/api/v1/admin/schedule/",
        json={"start_time": start.isoformat(), "end_time": (start - timedelta(hours=1)).isoformat()},
        headers=headers,
    )

    assert response.status_code == 422


async def test_duplicate_week(seed, client, headers):
    hatha = await make_class_type(seed)
    monday = utcnow().date() - timedelta(days=utcnow().weekday())
    base = datetime.combine(monday, time(10, 0), tzinfo=timezone.utc)
    source = await make_class_session(seed, starts_in=base - utcnow(), capacity=7, class_type=hatha)
    await make_class_session(seed, starts_in=base + timedelta(days=2) - utcnow())

    response = await client.post(
        "/api/v1/admin/schedule/duplicate-week",
        json={"week_start": monday.isoformat()},
        headers=headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["created"] == 2
    first = body["sessions"][0]
    assert first["capacity"] == 7
    assert first["class_type"]["name"] == "Hatha"
    assert first["bookings_count"] == 0
    copied_start = datetime.fromisoformat(first["start_time"])
    if copied_start.tzinfo is None:
        copied_start = copied_start.replace(tzinfo=timezone.utc)
    assert copied_start == source.start_time + timedelta(days=7)


async def test_duplicate_empty_week(client, headers):
    response = await client.post(
        "/api/v1/admin/schedule/duplicate-week",
        json={"week_start": "2020-01-06"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "There are no sessions to copy in this week"


async def test_capacity_cannot_drop_below_bookings(seed, client, headers):
    member = await make_profile(seed)
    other = await make_profile(seed, first_name="Bella", phone="77010000002")
    await make_subscription(seed, member)
    await make_subscription(seed, other)
    class_session = await make_class_session(seed, capacity=5)
    for profile in (member, other):
        await client.post(
            "/api/v1/portal/bookings",
            json={"session_id": class_session.id},
            headers=auth_headers(profile),
        )

    response = await client.patch(
        f"/api/v1/admin/schedule/{class_session.id}", json={"capacity": 1}, headers=headers
    )
    assert response.status_code == 400

    response = await client.patch(
        f"/api/v1/admin/schedule/{class_session.id}", json={"capacity": 2}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["bookings_count"] == 2


async def test_delete_session_removes_bookings(seed, client, headers):
    member = await make_profile(seed)
    await make_subscription(seed, member)
    class_session = await make_class_session(seed)
    booked = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )

    response = await client.delete(f"/api/v1/admin/schedule/{class_session.id}", headers=headers)

    assert response.status_code == 204
    assert await reload(seed, ClassSession, class_session.id) is None
    assert await reload(seed, Booking, booked.json()["id"]) is None


async def test_sell_unlimited_plan(seed, client, headers):
    member = await make_profile(seed)

    plan = await client.post(
        "/api/v1/admin/plans/",
        json={"name": "Unlimited", "price": "90000", "visits_count": 0},
        headers=headers,
    )
    assert plan.status_code == 201
    assert plan.json()["visits_count"] is None

    sold = await client.post(
        "/api/v1/admin/subscriptions/",
        json={"user_id": member.id, "plan_id": plan.json()["id"]},
        headers=headers,
    )
    assert sold.status_code == 201
    assert sold.json()["visits_total"] is None
    assert sold.json()["visits_remaining"] is None


async def test_client_list_filters(seed, client, headers):
    active = await make_profile(seed, phone="77010000001")
    expired = await make_profile(seed, first_name="Bella", phone="77010000002")
    never = await make_profile(seed, first_name="Cara", phone="77010000003")
    await make_subscription(seed, active, visits_total=8, visits_remaining=3)
    await make_subscription(seed, expired, days=-2, activation_offset_days=-40)

    async def ids(state):
        response = await client.get(
            "/api/v1/admin/clients/", params={"subscription_state": state}, headers=headers
        )
        assert response.status_code == 200
        return {c["id"] for c in response.json()["clients"]}

    assert await ids("active") == {active.id}
    assert await ids("expired") == {expired.id}
    assert await ids("none") == {never.id}

    everyone = await client.get("/api/v1/admin/clients/", headers=headers)
    body = everyone.json()
    assert body["total"] == 3
    row = next(c for c in body["clients"] if c["id"] == active.id)
    assert row["subscription_state"] == "active"
    assert row["active_visits_remaining"] == 3


async def test_client_search(seed, client, headers):
    await make_profile(seed, first_name="Anna", phone="77010000001")
    await make_profile(seed, first_name="Bella", phone="77010000002")

    response = await client.get(
        "/api/v1/admin/clients/", params={"search": "bel"}, headers=headers
    )

    assert [c["first_name"] for c in response.json()["clients"]] == ["Bella"]


async def test_client_detail_stats(seed, client, headers):
    member = await make_profile(seed)
    await make_subscription(seed, member)
    upcoming = await make_class_session(seed, starts_in=timedelta(days=1))
    other = await make_class_session(seed, starts_in=timedelta(days=2))
    for class_session in (upcoming, other):
        await client.post(
            "/api/v1/portal/bookings",
            json={"session_id": class_session.id},
            headers=auth_headers(member),
        )
    bookings = (await client.get("/api/v1/portal/profile", headers=auth_headers(member))).json()["bookings"]
    cancel_id = next(b["id"] for b in bookings if b["session_id"] == other.id)
    await client.post(f"/api/v1/portal/bookings/{cancel_id}/cancel", headers=auth_headers(member))

    response = await client.get(f"/api/v1/admin/clients/{member.id}", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["stats"] == {"total_bookings": 2, "completed": 0, "cancelled": 1, "upcoming": 1}
    assert body["subscriptions"][0]["visits_remaining"] == 9
    assert body["subscriptions"][0]["client_name"] == "Anna"


async def test_edit_client_phone_conflict(seed, client, headers):
    member = await make_profile(seed, phone="77010000001")
    await make_profile(seed, first_name="Bella", phone="77010000002")

    response = await client.patch(
        f"/api/v1/admin/clients/{member.id}", json={"phone": "7 701 000 00 02"}, headers=headers
    )

    assert response.status_code == 409


async def test_delete_client(seed, client, headers):
    member = await make_profile(seed)
    await make_subscription(seed, member)

    response = await client.delete(f"/api/v1/admin/clients/{member.id}", headers=headers)

    assert response.status_code == 204
    assert await reload(seed, Profile, member.id) is None


async def test_dashboard(seed, client, headers):
    member = await make_profile(seed)
    plan = await make_plan(seed, price=40000)
    await make_subscription(seed, member, plan=plan)
    class_session = await make_class_session(seed)
    await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )

    response = await client.get("/api/v1/admin/dashboard", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["clients_count"] == 1
    assert float(body["month_revenue"]) == 40000
    assert body["bookings_today"] == 1


async def test_users_list_includes_staff(seed, client, admin, headers):
    member = await make_profile(seed)

    response = await client.get("/api/v1/admin/users", headers=headers)

    assert response.status_code == 200
    roles = {u["id"]: u["role"] for u in response.json()}
    assert roles == {admin.id: "admin", member.id: "client"}


async def test_mark_completed_via_api(seed, client, headers):
    member = await make_profile(seed)
    await make_subscription(seed, member)
    class_session = await make_class_session(seed)
    booked = await client.post(
        "/api/v1/portal/bookings",
        json={"session_id": class_session.id},
        headers=auth_headers(member),
    )

    response = await client.put(
        f"/api/v1/admin/attendance/bookings/{booked.json()['id']}/status",
        json={"status": "completed"},
        headers=headers,
    )

    assert response.status_code == 200
    stored = await reload(seed, Booking, booked.json()["id"])
    assert stored.status == BookingStatus.completed


async def test_catalog_crud(client, headers):
    coach = await client.post(
        "/api/v1/admin/instructors/", json={"name": "Maya", "specialization": "Ashtanga"}, headers=headers
    )
    assert coach.status_code == 201

    class_type = await client.post(
        "/api/v1/admin/class-types/", json={"name": "Yin", "duration_min": 75}, headers=headers
    )
    assert class_type.status_code == 201
    assert class_type.json()["color"] == "#3b82f6"

    renamed = await client.patch(
        f"/api/v1/admin/instructors/{coach.json()['id']}", json={"name": "Maya K."}, headers=headers
    )
    assert renamed.json()["name"] == "Maya K."

    removed = await client.delete(f"/api/v1/admin/class-types/{class_type.json()['id']}", headers=headers)
    assert removed.status_code == 204

    missing = await client.delete(f"/api/v1/admin/class-types/{class_type.json()['id']}", headers=headers)
    assert missing.status_code == 404


async def test_news_toggle_and_portal_feed(seed, client, headers):
    member = await make_profile(seed)
    created = await client.post(
        "/api/v1/admin/news/",
        json={"title": "Summer schedule", "content": "New classes", "is_published": False},
        headers=headers,
    )
    assert created.status_code == 201

    home = await client.get("/api/v1/portal/home", headers=auth_headers(member))
    assert home.json()["news"] == []

    toggled = await client.post(f"/api/v1/admin/news/{created.json()['id']}/toggle", headers=headers)
    assert toggled.json()["is_published"] is True

    home = await client.get("/api/v1/portal/home", headers=auth_headers(member))
    assert [n["title"] for n in home.json()["news"]] == ["Summer schedule"]


async def test_aggregator_records(client, headers):
    created = await client.post(
        "/api/v1/admin/aggregators/",
        json={"aggregator_name": "1Fit", "client_name": "Olga", "price": "3500"},
        headers=headers,
    )
    assert created.status_code == 201

    listed = await client.get("/api/v1/admin/aggregators/", headers=headers)
    assert [a["client_name"] for a in listed.json()] == ["Olga"]
