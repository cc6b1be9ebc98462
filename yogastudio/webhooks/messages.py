"""Telegram texts (HTML parse mode) for database change events"""
from html import escape
from typing import Any, Optional

from yogastudio.webhooks.schemas import WebhookEvent


def _field(record: dict, key: str, default: str = "") -> str:
    value: Any = record.get(key)
    if value is None or value == "":
        return default
    return escape(str(value))


def short_id(value: Any) -> str:
    return escape(str(value).split("-")[0])


def new_client_message(record: dict) -> str:
    name = f"{_field(record, 'first_name', 'Not specified')} {_field(record, 'last_name')}".strip()
    return (
        "🎉 <b>New client!</b>\n"
        f"👤 Name: {name}\n"
        f"📱 Phone: {_field(record, 'phone', 'None')}\n"
        f"✉️ Email: {_field(record, 'email', 'None')}"
    )


def new_booking_message(record: dict) -> str:
    return (
        "📝 <b>New class booking!</b>\n"
        f"🆔 Booking ID: <code>{short_id(record.get('id'))}...</code>\n"
        f"👤 Client ID: <code>{_field(record, 'user_id')}</code>"
    )


def cancelled_booking_message(record: dict) -> str:
    return (
        "❌ <b>Booking cancelled!</b>\n"
        f"🆔 Booking ID: <code>{_field(record, 'id')}</code>"
    )


def build_message(event: WebhookEvent) -> Optional[str]:
    """Text to relay for the event, or None when the event is not interesting"""
    record = event.record or {}
    old_record = event.old_record or {}

    if event.table == "profiles" and event.type == "INSERT":
        return new_client_message(record)

    if event.table == "bookings" and event.type == "INSERT" and record.get("status") == "booked":
        return new_booking_message(record)

    if (
        event.table == "bookings"
        and event.type == "UPDATE"
        and record.get("status") == "cancelled"
        and old_record.get("status") != "cancelled"
    ):
        return cancelled_booking_message(record)

    return None
