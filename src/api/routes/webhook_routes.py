"""
Telegram webhook routes.

POST acknowledges immediately and processes the update in a spawned task,
so OCR latency never holds the transport open. GET is a liveness probe.
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import ValidationError as PydanticValidationError

from bot.update_models import TelegramUpdate
from utils.logger import get_logger

router = APIRouter()


async def run_update(dispatcher, update: TelegramUpdate, logger=None) -> None:
    """Task body: the dispatcher has its own boundary, this one guards the loop."""
    logger = logger or get_logger()
    try:
        await dispatcher.handle_update(update)
    except asyncio.CancelledError:
        logger.warning(f"Update {update.update_id} cancelled", component="Webhook")
        raise
    except Exception as e:
        logger.critical(f"Update {update.update_id} escaped the dispatcher: {e}",
                        component="Webhook", exc_info=True)


def spawn_update_task(app_state, update: TelegramUpdate) -> asyncio.Task:
    """Start processing out-of-band and keep a reference until it finishes."""
    task = asyncio.create_task(run_update(app_state.dispatcher, update))
    app_state.background_tasks.add(task)
    task.add_done_callback(app_state.background_tasks.discard)
    return task


@router.post(
    "",
    summary="Receive a Telegram update",
)
async def receive_update(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """
    Acknowledge-then-process entry point for Telegram.

    Malformed envelopes are acknowledged and dropped so Telegram does not
    redeliver them forever.
    """
    logger = get_logger()
    secret = getattr(request.app.state, "webhook_secret", "")
    if secret and x_telegram_bot_api_secret_token != secret:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid secret token")

    try:
        body = await request.json()
        update = TelegramUpdate.model_validate(body)
    except (ValueError, PydanticValidationError) as e:
        logger.warning(f"Dropped malformed update: {e}", component="Webhook")
        return {"ok": True, "processed": False}

    spawn_update_task(request.app.state, update)
    return {"ok": True, "processed": True, "update_id": update.update_id}


@router.get(
    "",
    summary="Webhook liveness probe",
)
async def webhook_status():
    return {"ok": True, "message": "Telegram webhook endpoint is active"}
