"""
Event Dispatcher
Routes one inbound Telegram update to the flow that owns it.

Routing order for text: pending confirmation first, then onboarding input,
otherwise a fallback prompt. Photos go to the ingestion pipeline. Every event
runs inside its own error boundary so one failure never affects another.
"""
import asyncio
from contextlib import asynccontextmanager

import config
from bot.update_models import EventKind, TelegramUpdate, classify
from conversation import messages
from conversation.confirmation import ConfirmationFlow
from conversation.onboarding import OnboardingFlow
from conversation.report_pipeline import ReportIngestionPipeline
from conversation.state_store import ConversationStateStore
from utils.logger import get_logger

START_COMMAND = '/start'


def is_start_command(text: str) -> bool:
    """Matches /start, /start@SomeBot and /start <payload>."""
    parts = (text or '').split()
    if not parts:
        return False
    return parts[0].split('@', 1)[0].lower() == START_COMMAND


class EventDispatcher:

    def __init__(self, store: ConversationStateStore, onboarding: OnboardingFlow,
                 confirmation: ConfirmationFlow, pipeline: ReportIngestionPipeline,
                 notifier, logger=None, serialize_per_user: bool = None):
        self.store = store
        self.onboarding = onboarding
        self.confirmation = confirmation
        self.pipeline = pipeline
        self.notifier = notifier
        self.logger = logger or get_logger()
        self.serialize_per_user = (
            config.SERIALIZE_USER_EVENTS if serialize_per_user is None else serialize_per_user
        )

    @classmethod
    def build(cls, host_db, media_client, ocr_engine, notifier, store=None, logger=None):
        """Wire the flows around one shared state store."""
        logger = logger or get_logger()
        store = store or ConversationStateStore(ttl_seconds=config.STATE_TTL_SECONDS, logger=logger)
        return cls(
            store=store,
            onboarding=OnboardingFlow(store, host_db, notifier, logger),
            confirmation=ConfirmationFlow(store, host_db, notifier, logger),
            pipeline=ReportIngestionPipeline(store, host_db, media_client, ocr_engine, notifier, logger),
            notifier=notifier,
            logger=logger,
        )

    @asynccontextmanager
    async def _user_scope(self, user_id):
        if self.serialize_per_user:
            async with self.store.user_lock(user_id):
                yield
        else:
            yield

    async def handle_update(self, update: TelegramUpdate) -> None:
        """Process one update; never raises."""
        message = update.message
        if message is None:
            self.logger.debug(f"Update {update.update_id} has no message, ignored", component="Dispatch")
            return

        chat_id = message.chat.id
        user_id = message.from_user.id
        try:
            async with self._user_scope(user_id):
                await self._route(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(
                f"Unhandled error for update {update.update_id} (user {user_id}): {e}",
                component="Dispatch", exc_info=True
            )
            await self.notifier.send(chat_id, messages.GENERIC_APOLOGY)

    async def _route(self, message) -> None:
        chat_id = message.chat.id
        user_id = message.from_user.id
        kind = classify(message)

        if kind in (EventKind.COMMAND, EventKind.TEXT):
            if is_start_command(message.text):
                await self.onboarding.start(chat_id, user_id, message.display_name)
                return

            # Other commands are plain input here: "/secret1" is a valid password
            if self.confirmation.is_pending(user_id):
                await self.confirmation.handle_text(chat_id, user_id, message.text)
                return

            stage = await self.onboarding.current_stage(user_id)
            if stage is not None:
                await self.onboarding.handle_text(chat_id, user_id, message.display_name, message.text, stage)
                return

        if kind is EventKind.PHOTO:
            await self.pipeline.handle_photo(message)
            return

        await self.notifier.send(chat_id, messages.FALLBACK_PROMPT)
