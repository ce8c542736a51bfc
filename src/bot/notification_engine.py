"""
Notification Engine

Best-effort Telegram message sender.
Uses the telegram.Bot API directly -- no bot framework dependency.
Failures are logged and swallowed so a lost message never stops a pipeline.
"""
import asyncio
from typing import Optional, Set

import config
from conversation import messages
from storage.models import Report, UserRegistrationRecord
from utils.logger import get_logger

MARKDOWN = 'Markdown'


class NotificationEngine:
    """Send Telegram messages to hosts."""

    def __init__(self, bot_token: str = None, bot=None, logger=None):
        self._bot_token = bot_token or config.TELEGRAM_BOT_TOKEN
        self._bot = bot
        self.logger = logger or get_logger()
        self._pending: Set[asyncio.Task] = set()

    @property
    def bot(self):
        if self._bot is None:
            from telegram import Bot
            self._bot = Bot(token=self._bot_token)
        return self._bot

    async def send(self, recipient_id, text: str, parse_mode: Optional[str] = MARKDOWN) -> bool:
        """Send a message; returns False instead of raising on failure."""
        try:
            await self.bot.send_message(chat_id=recipient_id, text=text, parse_mode=parse_mode)
            return True
        except Exception as e:
            self.logger.warning(f"Failed to send to {recipient_id}: {e}", component="Notify")
            return False

    def send_nowait(self, recipient_id, text: str, parse_mode: Optional[str] = MARKDOWN) -> asyncio.Task:
        """Schedule a send without waiting for it."""
        task = asyncio.ensure_future(self.send(recipient_id, text, parse_mode))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled send to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Manager-action notifications
    # ------------------------------------------------------------------

    async def notify_account_approved(self, user: UserRegistrationRecord) -> bool:
        return await self.send(user.telegram_user_id, messages.account_approved(user.full_name, user.email))

    async def notify_registration_rejected(self, user: UserRegistrationRecord) -> bool:
        return await self.send(user.telegram_user_id, messages.registration_rejected(user.full_name or user.username))

    async def notify_account_deactivated(self, user: UserRegistrationRecord) -> bool:
        return await self.send(user.telegram_user_id, messages.account_deactivated(user.full_name))

    async def notify_account_reactivated(self, user: UserRegistrationRecord) -> bool:
        return await self.send(user.telegram_user_id, messages.account_reactivated(user.full_name, user.email))

    async def notify_report_reviewed(self, telegram_user_id, report: Report, verified: bool) -> bool:
        text = messages.report_reviewed(
            report.id, report.gmv_amount, report.duration_label,
            report.created_at, verified=verified, notes=report.notes,
        )
        return await self.send(telegram_user_id, text)
