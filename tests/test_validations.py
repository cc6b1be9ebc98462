from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from yogastudio.core.exceptions import AuthenticationError, ValidationError
from yogastudio.core.security import get_password_hash, jwt_manager, verify_password
from yogastudio.core.validations import as_utc, clean_phone_number, start_of_day
from yogastudio.staff.schemas.attendance import NotifyRequest
from yogastudio.staff.schemas.catalog import PlanCreate
from yogastudio.staff.schemas.schedule import SessionCreate


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+7 (701) 234-56-78", "77012345678"),
        ("8 701 234 56 78", "87012345678"),
        ("7012345678", "7012345678"),
    ],
)
def test_clean_phone_number(raw, expected):
    assert clean_phone_number(raw) == expected


@pytest.mark.parametrize("raw", ["", "12-34", "+7 (701)"])
def test_clean_phone_number_rejects(raw):
    with pytest.raises(ValidationError):
        clean_phone_number(raw)


def test_as_utc_treats_naive_as_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    almaty = timezone(timedelta(hours=5))
    assert as_utc(datetime(2026, 1, 1, 17, 0, tzinfo=almaty)).hour == 12
    assert as_utc(None) is None


def test_start_of_day_is_utc_midnight():
    almaty = timezone(timedelta(hours=5))

    assert start_of_day(datetime(2026, 3, 1, 2, 30, tzinfo=almaty)) == datetime(
        2026, 2, 28, 0, 0, tzinfo=timezone.utc
    )
    assert start_of_day().hour == 0


def test_plan_zero_visits_means_unlimited():
    assert PlanCreate(name="Unlimited", price=1, visits_count=0).visits_count is None
    assert PlanCreate(name="8 visits", price=1, visits_count=8).visits_count == 8


def test_session_needs_positive_length():
    start = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
    with pytest.raises(PydanticValidationError):
        SessionCreate(start_time=start, end_time=start)
    with pytest.raises(PydanticValidationError):
        SessionCreate(start_time=start, end_time=start + timedelta(hours=1), capacity=0)


def test_custom_notification_needs_note():
    with pytest.raises(PydanticValidationError):
        NotifyRequest(type="custom", note="   ")
    assert NotifyRequest(type="remind").note is None


def test_password_hashing():
    hashed = get_password_hash("secret-pass")

    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret-pass", None)


def test_token_round_trip():
    token = jwt_manager.create_access_token(5, "client")

    payload = jwt_manager.decode_token(token)

    assert payload["sub"] == "5"
    assert payload["role"] == "client"


def test_tampered_token_rejected():
    token = jwt_manager.create_access_token(5, "admin")

    with pytest.raises(AuthenticationError):
        jwt_manager.decode_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))
