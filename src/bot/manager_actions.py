"""
Manager-side actions on hosts and reports.

Each action updates the host database, then notifies the affected host on
Telegram. Notification is best-effort; the database change stands either way.
"""
import asyncio
from typing import List, Optional

from storage.models import Report, ReportStatus, UserRegistrationRecord
from utils.logger import get_logger


class ManagerActions:

    def __init__(self, host_db, notifier, logger=None):
        self.host_db = host_db
        self.notifier = notifier
        self.logger = logger or get_logger()

    async def pending_users(self) -> List[UserRegistrationRecord]:
        return await asyncio.to_thread(self.host_db.list_pending_users)

    async def _require_user(self, telegram_user_id) -> UserRegistrationRecord:
        user = await asyncio.to_thread(self.host_db.get_user_by_telegram_id, str(telegram_user_id))
        if user is None:
            raise LookupError(f"No host with Telegram ID {telegram_user_id}")
        return user

    async def approve(self, telegram_user_id) -> UserRegistrationRecord:
        """Approve and activate a host."""
        await self._require_user(telegram_user_id)
        user = await asyncio.to_thread(self.host_db.set_approval, str(telegram_user_id), True)
        self.logger.info(f"Host {telegram_user_id} approved", component="Manager")
        await self.notifier.notify_account_approved(user)
        return user

    async def reject(self, telegram_user_id) -> UserRegistrationRecord:
        """Reject a registration: notify first, then delete the record."""
        user = await self._require_user(telegram_user_id)
        await self.notifier.notify_registration_rejected(user)
        await asyncio.to_thread(self.host_db.delete_user, str(telegram_user_id))
        self.logger.info(f"Host {telegram_user_id} rejected and deleted", component="Manager")
        return user

    async def deactivate(self, telegram_user_id) -> UserRegistrationRecord:
        await self._require_user(telegram_user_id)
        user = await asyncio.to_thread(self.host_db.set_active, str(telegram_user_id), False)
        self.logger.info(f"Host {telegram_user_id} deactivated", component="Manager")
        await self.notifier.notify_account_deactivated(user)
        return user

    async def reactivate(self, telegram_user_id) -> UserRegistrationRecord:
        await self._require_user(telegram_user_id)
        user = await asyncio.to_thread(self.host_db.set_active, str(telegram_user_id), True)
        self.logger.info(f"Host {telegram_user_id} reactivated", component="Manager")
        await self.notifier.notify_account_reactivated(user)
        return user

    async def review_report(self, report_id: int, verified: bool, notes: Optional[str] = None) -> Report:
        """Mark a report VERIFIED or REJECTED and tell its host."""
        report = await asyncio.to_thread(self.host_db.get_report, report_id)
        if report is None:
            raise LookupError(f"No report #{report_id}")

        status = ReportStatus.VERIFIED if verified else ReportStatus.REJECTED
        report = await asyncio.to_thread(self.host_db.update_report_status, report_id, status, notes)
        self.logger.info(f"Report #{report_id} marked {status.value}", component="Manager")

        host = await asyncio.to_thread(self.host_db.get_user_by_id, report.host_id)
        if host is not None:
            await self.notifier.notify_report_reviewed(host.telegram_user_id, report, verified)
        return report
