import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError

from yogastudio.core import config
from yogastudio.core.limits import limiter
from yogastudio.core.telegram_sender import send_telegram_message
from yogastudio.webhooks.messages import build_message
from yogastudio.webhooks.schemas import WebhookEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def _secret_matches(secret: Optional[str]) -> bool:
    expected = config.WEBHOOK_SECRET
    if not expected or not secret:
        return False
    return hmac.compare_digest(secret.encode(), expected.encode())


@router.api_route("/webhook", methods=ALL_METHODS, include_in_schema=False)
@limiter.limit("120/minute")
async def database_webhook(
    request: Request,
    secret: Optional[str] = Query(None),
):
    """
    Relay database change events to the admin Telegram chat.

    Expects POST /api/webhook?secret=... with {type, table, record, old_record}.
    """
    if request.method != "POST":
        return PlainTextResponse("Method Not Allowed", status_code=405)

    if not _secret_matches(secret):
        logger.warning("Webhook called with an invalid secret")
        return PlainTextResponse("Unauthorized", status_code=401)

    try:
        payload = await request.json()
        event = WebhookEvent.model_validate(payload)
    except (ValueError, PydanticValidationError) as e:
        logger.warning(f"Invalid webhook payload: {str(e)}")
        return PlainTextResponse("Invalid payload", status_code=400)

    try:
        message = build_message(event)
        if message:
            await send_telegram_message(message)
            logger.info(
                "Webhook notification relayed",
                extra={"table": event.table, "event_type": event.type},
            )
            return JSONResponse({"success": True})

        return PlainTextResponse("No notification needed", status_code=200)

    except Exception as e:
        logger.error(f"Webhook relay failed: {str(e)}", exc_info=True)
        return PlainTextResponse(str(e), status_code=500)
