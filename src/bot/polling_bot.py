"""
Polling mode for local development.

Runs a python-telegram-bot Application that feeds every message update into
the same EventDispatcher the webhook uses, so both entry points share one
code path.
"""
import os
import time

import config
from bot.notification_engine import NotificationEngine
from bot.telegram_media import TelegramMediaClient
from bot.update_models import TelegramUpdate
from conversation.dispatcher import EventDispatcher
from ocr.ocr_engine import OCREngine
from storage.host_db import HostDB
from utils.logger import get_logger


class PollingBot:
    """Long-polling front end for the event dispatcher."""

    def __init__(self, dispatcher: EventDispatcher = None, logger=None):
        self.logger = logger or get_logger()
        if dispatcher is None:
            notifier = NotificationEngine()
            dispatcher = EventDispatcher.build(
                host_db=HostDB(db_path=config.HOST_DB_PATH),
                media_client=TelegramMediaClient(bot=notifier.bot),
                ocr_engine=OCREngine(),
                notifier=notifier,
                logger=self.logger,
            )
        self.dispatcher = dispatcher

    async def on_update(self, update, context) -> None:
        """PTB callback: convert to the webhook envelope and dispatch."""
        envelope = TelegramUpdate.model_validate(update.to_dict())
        await self.dispatcher.handle_update(envelope)

    def build_application(self):
        from telegram.ext import Application, MessageHandler, filters

        application = (
            Application.builder()
            .token(config.TELEGRAM_BOT_TOKEN)
            .concurrent_updates(True)
            .build()
        )
        application.add_handler(MessageHandler(filters.ALL, self.on_update))
        return application

    def run(self):
        """Start polling; retries on Conflict while an old instance shuts down."""
        from telegram import Update

        application = self.build_application()

        print("=" * 80)
        print("LIVE SESSION REPORTER BOT STARTED (polling)")
        print("=" * 80)
        print(f"Temp folder: {config.TEMP_FOLDER}")
        print(f"Host database: {config.HOST_DB_PATH}")
        print("=" * 80)

        max_retries = int(os.getenv('BOT_POLLING_RETRIES', '5'))
        for attempt in range(1, max_retries + 1):
            try:
                application.run_polling(
                    allowed_updates=[Update.MESSAGE],
                    drop_pending_updates=True,
                )
                break
            except Exception as poll_err:
                if 'conflict' in str(poll_err).lower() and attempt < max_retries:
                    wait = min(10 * attempt, 30)
                    print(f"[RETRY] Polling conflict (attempt {attempt}/{max_retries}), retrying in {wait}s...")
                    time.sleep(wait)
                    continue
                raise


def main():
    """Main entry point"""
    try:
        config.validate_config()
        print("[OK] Configuration validated")

        PollingBot().run()

    except Exception as e:
        print(f"[FAIL] Failed to start bot: {str(e)}")
        raise


if __name__ == "__main__":
    main()
