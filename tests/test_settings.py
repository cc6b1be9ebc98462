from yogastudio.staff.crud.settings import (
    get_cancellation_window,
    get_studio_info,
    seed_default_settings,
    set_setting,
)
from yogastudio.staff.models import StudioInfo

from tests.factories import reload_setting, set_window


async def test_window_defaults_without_row(db):
    assert await get_cancellation_window(db) == 60


async def test_seed_is_idempotent(db, seed):
    await seed_default_settings(db)
    await set_window(seed, 90)
    await seed_default_settings(db)

    row = await reload_setting(seed, "cancellation_minutes")
    assert row.value == "90"


async def test_unparsable_window_falls_back(db, seed):
    seed.add(StudioInfo(key="cancellation_minutes", value="soon"))
    await seed.commit()

    assert await get_cancellation_window(db) == 60


async def test_studio_info_lists_every_key(db):
    await set_setting(db, "name", "Balance")
    await db.commit()

    info = await get_studio_info(db)

    assert info["name"] == "Balance"
    assert set(info) == {"name", "description", "address", "phone", "instagram"}
    assert info["instagram"] is None
