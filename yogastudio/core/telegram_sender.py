import logging
from typing import Optional, Union

import httpx

from yogastudio.core.config import TELEGRAM_BOT_TOKEN, TELEGRAM_ADMIN_CHAT_ID

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


async def send_telegram_message(
    text: str,
    chat_id: Optional[Union[int, str]] = None,
    parse_mode: str = "HTML",
    token: Optional[str] = None,
) -> bool:
    """
    Send a message through the studio bot.

    Args:
        text: Message text
        chat_id: Target chat, defaults to the admin chat
        parse_mode: HTML or MarkdownV2
        token: Bot token, defaults to TELEGRAM_BOT_TOKEN

    Returns:
        bool: True if Telegram accepted the message. Missing credentials
        skip sending and return False.
    """
    token = token or TELEGRAM_BOT_TOKEN
    chat_id = chat_id or TELEGRAM_ADMIN_CHAT_ID

    if not token or not chat_id:
        logger.warning("Telegram bot token or chat id is not set, notification skipped")
        return False

    url = f"{TELEGRAM_API_URL}/bot{token}/sendMessage"
    payload = {"chat_id": chat_id, "text": text, "parse_mode": parse_mode}

    async with httpx.AsyncClient() as client:
        response = await client.post(url, json=payload, timeout=10.0)

    if response.status_code == 200:
        return True

    logger.error(f"Failed to send Telegram message: {response.text}")
    return False
