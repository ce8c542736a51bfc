"""
Confirmation of a parsed screenshot: Y saves a PENDING report, N discards it.
"""
import asyncio

from bot.errors import PersistenceError
from conversation import messages
from conversation.models import ConversationStage, PendingReportPayload
from utils.logger import get_logger

AFFIRMATIVE_TOKENS = frozenset({'Y', 'YA', 'YES'})
NEGATIVE_TOKENS = frozenset({'N', 'NO', 'TIDAK', 'CANCEL'})


class ConfirmationFlow:

    def __init__(self, store, host_db, notifier, logger=None):
        self.store = store
        self.host_db = host_db
        self.notifier = notifier
        self.logger = logger or get_logger()

    def is_pending(self, user_id) -> bool:
        state = self.store.get(user_id)
        return state is not None and state.stage is ConversationStage.WAITING_CONFIRMATION

    async def handle_text(self, chat_id, user_id, text: str) -> None:
        """Interpret a reply while a report is waiting for confirmation."""
        state = self.store.get(user_id)
        if state is None or state.stage is not ConversationStage.WAITING_CONFIRMATION:
            return

        answer = (text or '').strip().upper()
        if answer in AFFIRMATIVE_TOKENS:
            await self._save(chat_id, user_id, PendingReportPayload.from_dict(state.payload))
        elif answer in NEGATIVE_TOKENS:
            self.store.clear(user_id)
            await self.notifier.send(chat_id, messages.REPORT_CANCELLED)
            self.logger.info(f"User {user_id} cancelled pending report", component="Confirm")
        else:
            await self.notifier.send(chat_id, messages.INVALID_CONFIRMATION)

    async def _save(self, chat_id, user_id, payload: PendingReportPayload) -> None:
        try:
            report = await asyncio.to_thread(
                self.host_db.create_report,
                payload.owner_id,
                payload.gmv_amount,
                payload.screenshot_url,
                payload.ocr_raw_text,
                payload.duration_label,
            )
        except PersistenceError as e:
            self.logger.error(f"Failed to save report for user {user_id}: {e}", component="Confirm")
            await self.notifier.send(chat_id, messages.REPORT_SAVE_FAILED)
            return
        finally:
            # No automatic retry: the host resubmits the photo
            self.store.clear(user_id)

        self.logger.log_report_saved(report.id, report.host_id, report.gmv_amount)
        saved_at = messages.display_time(report.created_at)
        await self.notifier.send(
            chat_id, messages.report_saved(report.id, report.gmv_amount, report.duration_label, saved_at)
        )
