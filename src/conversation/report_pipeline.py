"""
Report Ingestion Pipeline
Screenshot -> download -> OCR (with retry) -> GMV/duration -> confirmation prompt

One invocation per inbound photo. The downloaded image lives in a temp file
owned by that invocation and is removed on every exit path.
"""
import asyncio
import os
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Awaitable, Callable, Optional

import config
from bot.errors import AccessDeniedError, ProviderConfigurationError, TransientProviderError
from bot.update_models import TelegramMessage
from conversation import messages
from conversation.models import ConversationStage, PendingReportPayload
from parsing.metric_parser import parse_duration, parse_gmv
from storage.models import UserRegistrationRecord
from utils.logger import get_logger


@contextmanager
def scoped_temp_image(content: bytes, prefix: str, folder: str = None):
    """Write image bytes to a private temp file and always delete it afterwards."""
    folder = folder or config.TEMP_FOLDER
    os.makedirs(folder, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = os.path.join(folder, f"{prefix}_{timestamp}_{uuid.uuid4().hex[:8]}.jpg")
    try:
        with open(path, 'wb') as fh:
            fh.write(content)
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


class ReportIngestionPipeline:
    """Turns a LIVE screenshot into a report awaiting the host's confirmation."""

    def __init__(self, store, host_db, media_client, ocr_engine, notifier, logger=None,
                 max_retries: int = None, base_delay: float = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 screenshot_uri_template: str = None, temp_folder: str = None):
        self.store = store
        self.host_db = host_db
        self.media_client = media_client
        self.ocr_engine = ocr_engine
        self.notifier = notifier
        self.logger = logger or get_logger()
        self.max_retries = config.OCR_MAX_RETRIES if max_retries is None else max_retries
        self.base_delay = config.OCR_RETRY_BASE_DELAY_SECONDS if base_delay is None else base_delay
        self._sleep = sleep
        self.screenshot_uri_template = screenshot_uri_template or config.SCREENSHOT_URI_TEMPLATE
        self.temp_folder = temp_folder or config.TEMP_FOLDER

    async def handle_photo(self, message: TelegramMessage) -> Optional[PendingReportPayload]:
        """
        Process one screenshot.

        Returns:
            The staged payload, or None when the pipeline stopped early
        """
        chat_id = message.chat.id
        user_id = message.from_user.id

        try:
            record = await self._check_access(user_id)
        except AccessDeniedError as e:
            self.logger.info(f"User {user_id} photo rejected: {e}", component="Pipeline")
            await self.notifier.send(chat_id, e.user_message)
            return None

        # Newest photo supersedes a pending confirmation
        state = self.store.get(user_id)
        if state and state.stage is ConversationStage.WAITING_CONFIRMATION:
            self.store.clear(user_id)
            self.logger.info(f"User {user_id} pending confirmation superseded", component="Pipeline")

        self.notifier.send_nowait(chat_id, messages.PROCESSING_SCREENSHOT)

        photo = message.largest_photo()
        try:
            location = await self.media_client.resolve_file_location(photo.file_id)
            content = await self.media_client.download(location)
        except Exception as e:
            self.logger.warning(f"User {user_id} photo download failed: {e}", component="Pipeline")
            await self.notifier.send(chat_id, messages.DOWNLOAD_FAILED)
            return None

        with scoped_temp_image(content, f"screenshot_{user_id}", self.temp_folder) as image_path:
            try:
                raw_text = await self._recognize(user_id, image_path, len(content) // 1024)
            except (TransientProviderError, ProviderConfigurationError) as e:
                self.logger.error(f"User {user_id} OCR failed: {e}", component="OCR")
                await self.notifier.send(chat_id, messages.ocr_failed(e.user_message), parse_mode=None)
                return None

        gmv_amount = parse_gmv(raw_text)
        duration_label = parse_duration(raw_text)
        self.logger.log_metrics_parsed(user_id, gmv_amount, duration_label)

        payload = PendingReportPayload(
            owner_id=record.id,
            gmv_amount=gmv_amount,
            screenshot_url=self.screenshot_uri(photo.file_id, photo.file_unique_id),
            ocr_raw_text=raw_text,
            duration_label=duration_label,
        )
        # Unconditional write: an older photo finishing late overwrites a newer one
        self.store.set(user_id, ConversationStage.WAITING_CONFIRMATION, payload.to_dict())

        await self.notifier.send(chat_id, messages.screenshot_summary(gmv_amount, duration_label))
        return payload

    async def _check_access(self, user_id) -> UserRegistrationRecord:
        record = await asyncio.to_thread(self.host_db.get_user_by_telegram_id, str(user_id))
        if record is None or not record.has_name:
            raise AccessDeniedError("unregistered", messages.ACCESS_DENIED_UNREGISTERED)
        if not record.is_approved:
            raise AccessDeniedError("not approved", messages.pending_approval(record.full_name, record.email))
        if not record.is_active:
            raise AccessDeniedError("inactive", messages.account_inactive(record.full_name, submitting=True))
        return record

    async def _recognize(self, user_id, image_path: str, size_kb: int) -> str:
        """OCR with bounded retry; waits attempt * base_delay between attempts."""
        total_attempts = self.max_retries + 1
        result = None
        for attempt in range(1, total_attempts + 1):
            self.logger.log_ocr_attempt(user_id, attempt, total_attempts, size_kb)
            result = await asyncio.to_thread(self.ocr_engine.extract_text, image_path=image_path)
            if result.success:
                return result.raw_text
            if not result.retryable:
                raise ProviderConfigurationError(result.error_message)
            if attempt < total_attempts:
                delay = attempt * self.base_delay
                self.logger.warning(
                    f"User {user_id} OCR attempt {attempt} failed ({result.error_message}), "
                    f"retrying in {delay}s",
                    component="OCR"
                )
                await self._sleep(delay)
        raise TransientProviderError(result.error_message)

    def screenshot_uri(self, file_id: str, file_unique_id: str = '') -> str:
        return self.screenshot_uri_template.format(file_id=file_id, file_unique_id=file_unique_id)
