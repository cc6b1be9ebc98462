from datetime import timedelta

import pytest

from yogastudio.core.exceptions import NotFoundError, ValidationError
from yogastudio.core.validations import start_of_day, utcnow
from yogastudio.clients.crud.subscriptions import (
    compute_status,
    credit_visit,
    debit_visit,
    get_client_subscriptions,
    select_active_subscription,
    sell_subscription,
    update_subscription,
)
from yogastudio.clients.models import UserSubscription
from yogastudio.clients.schemas.subscriptions import SubscriptionSell, SubscriptionUpdate

from tests.factories import make_plan, make_profile, make_subscription, reload


async def test_select_prefers_soonest_expiring(seed, db):
    client = await make_profile(seed)
    later = await make_subscription(seed, client, days=30)
    sooner = await make_subscription(seed, client, days=5)

    chosen = await select_active_subscription(db, client.id)

    assert chosen.id == sooner.id
    assert chosen.id != later.id


async def test_select_skips_exhausted_inactive_and_expired(seed, db):
    client = await make_profile(seed)
    await make_subscription(seed, client, visits_total=8, visits_remaining=0, days=2)
    await make_subscription(seed, client, is_active=False, days=3)
    await make_subscription(seed, client, days=-1)
    usable = await make_subscription(seed, client, visits_total=8, visits_remaining=1, days=20)

    chosen = await select_active_subscription(db, client.id)

    assert chosen.id == usable.id


async def test_select_accepts_unlimited(seed, db):
    client = await make_profile(seed)
    unlimited = await make_subscription(seed, client, visits_total=None)

    chosen = await select_active_subscription(db, client.id)

    assert chosen.id == unlimited.id
    assert chosen.is_unlimited


async def test_select_returns_none_without_subscription(seed, db):
    client = await make_profile(seed)
    assert await select_active_subscription(db, client.id) is None


async def _ending_today(session, client, hour=0):
    subscription = UserSubscription(
        user_id=client.id,
        visits_total=10,
        visits_remaining=5,
        activation_date=utcnow() - timedelta(days=10),
        end_date=start_of_day() + timedelta(hours=hour),
        is_active=True,
    )
    session.add(subscription)
    await session.commit()
    return subscription


async def test_subscription_usable_through_its_last_day(seed, db):
    client = await make_profile(seed)
    last_day = await _ending_today(seed, client)

    chosen = await select_active_subscription(db, client.id)
    live = await get_client_subscriptions(db, client.id, active_only=True)

    assert chosen is not None
    assert chosen.id == last_day.id
    assert [s.id for s in live] == [last_day.id]
    assert compute_status(chosen) == "critical"


async def test_subscription_ended_yesterday_is_expired(seed, db):
    client = await make_profile(seed)
    ended = await _ending_today(seed, client, hour=-1)

    assert await select_active_subscription(db, client.id) is None
    assert await get_client_subscriptions(db, client.id, active_only=True) == []
    assert compute_status(await reload(seed, UserSubscription, ended.id)) == "expired"


async def test_debit_never_goes_below_zero(seed, db):
    client = await make_profile(seed)
    sub = await make_subscription(seed, client, visits_total=2, visits_remaining=1)

    assert await debit_visit(db, sub.id) is True
    assert await debit_visit(db, sub.id) is False
    await db.commit()

    stored = await reload(seed, UserSubscription, sub.id)
    assert stored.visits_remaining == 0


async def test_credit_is_capped_at_total(seed, db):
    client = await make_profile(seed)
    sub = await make_subscription(seed, client, visits_total=5, visits_remaining=4)

    assert await credit_visit(db, sub.id) is True
    assert await credit_visit(db, sub.id) is False
    await db.commit()

    stored = await reload(seed, UserSubscription, sub.id)
    assert stored.visits_remaining == 5


async def test_unlimited_ledger_is_untouched(seed, db):
    client = await make_profile(seed)
    sub = await make_subscription(seed, client, visits_total=None)

    assert await debit_visit(db, sub.id) is True
    assert await credit_visit(db, sub.id) is False
    await db.commit()

    stored = await reload(seed, UserSubscription, sub.id)
    assert stored.visits_total is None
    assert stored.visits_remaining is None


async def test_debit_unknown_subscription(db):
    assert await debit_visit(db, 9999) is False


def _sub(**kwargs):
    now = utcnow()
    values = dict(
        visits_total=10,
        visits_remaining=5,
        activation_date=now - timedelta(days=1),
        end_date=now + timedelta(days=20),
        is_active=True,
    )
    values.update(kwargs)
    return UserSubscription(**values)


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({}, "active"),
        ({"is_active": False}, "finished"),
        ({"visits_remaining": 0}, "finished"),
        ({"activation_date": utcnow() + timedelta(days=2)}, "pending"),
        ({"end_date": utcnow() - timedelta(days=1)}, "expired"),
        ({"end_date": utcnow() + timedelta(days=2, hours=1)}, "critical"),
        ({"end_date": utcnow() + timedelta(days=6, hours=1)}, "warning"),
        ({"visits_total": None, "visits_remaining": None}, "active"),
    ],
)
def test_compute_status(kwargs, expected):
    assert compute_status(_sub(**kwargs)) == expected


async def test_sell_subscription_uses_plan(seed, db):
    client = await make_profile(seed)
    plan = await make_plan(seed, visits_count=8, duration_days=30)

    sub = await sell_subscription(db, SubscriptionSell(user_id=client.id, plan_id=plan.id))

    assert sub.visits_total == 8
    assert sub.visits_remaining == 8
    assert sub.plan.id == plan.id
    assert (sub.end_date - sub.activation_date).days == 30


async def test_sell_unlimited_plan(seed, db):
    client = await make_profile(seed)
    plan = await make_plan(seed, name="Unlimited", visits_count=None)

    sub = await sell_subscription(db, SubscriptionSell(user_id=client.id, plan_id=plan.id))

    assert sub.visits_total is None
    assert sub.visits_remaining is None


async def test_sell_to_unknown_client(seed, db):
    plan = await make_plan(seed)
    with pytest.raises(NotFoundError):
        await sell_subscription(db, SubscriptionSell(user_id=404, plan_id=plan.id))


async def test_update_rejects_remaining_above_total(seed, db):
    client = await make_profile(seed)
    sub = await make_subscription(seed, client, visits_total=8)

    with pytest.raises(ValidationError):
        await update_subscription(db, sub.id, SubscriptionUpdate(visits_remaining=9))

    stored = await reload(seed, UserSubscription, sub.id)
    assert stored.visits_remaining == 8


async def test_update_adjusts_balance(seed, db):
    client = await make_profile(seed)
    sub = await make_subscription(seed, client, visits_total=8, visits_remaining=2)

    updated = await update_subscription(db, sub.id, SubscriptionUpdate(visits_remaining=6))

    assert updated.visits_remaining == 6
