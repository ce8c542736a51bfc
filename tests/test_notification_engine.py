"""
Tests for outbound Telegram messaging and manager-action notifications.
The telegram.Bot is replaced by an AsyncMock.
"""
import asyncio
import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bot.notification_engine import NotificationEngine
from conversation import messages
from storage.models import RegistrationStage, Report, ReportStatus, UserRegistrationRecord


def make_user(**overrides):
    fields = dict(
        id=1, telegram_user_id='100', username='budi', registration_stage=RegistrationStage.COMPLETED,
        full_name='Budi Santoso', email='budi@example.com', is_approved=True, is_active=True,
    )
    fields.update(overrides)
    return UserRegistrationRecord(**fields)


class TestNotificationEngine(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.bot = MagicMock()
        self.bot.send_message = AsyncMock()
        self.logger = MagicMock()
        self.engine = NotificationEngine(bot_token='token', bot=self.bot, logger=self.logger)

    async def test_send(self):
        self.assertTrue(await self.engine.send(100, 'halo'))
        self.bot.send_message.assert_awaited_once_with(chat_id=100, text='halo', parse_mode='Markdown')

    async def test_send_failure_is_swallowed(self):
        self.bot.send_message.side_effect = RuntimeError("Forbidden: bot was blocked by the user")
        self.assertFalse(await self.engine.send(100, 'halo'))
        self.logger.warning.assert_called_once()

    async def test_send_nowait_is_tracked_until_drained(self):
        gate = asyncio.Event()

        async def slow_send(**kwargs):
            await gate.wait()

        self.bot.send_message.side_effect = slow_send
        task = self.engine.send_nowait(100, messages.PROCESSING_SCREENSHOT)
        await asyncio.sleep(0)
        self.assertFalse(task.done())

        gate.set()
        await self.engine.drain()
        self.assertTrue(task.done())
        self.assertTrue(task.result())
        self.assertEqual(len(self.engine._pending), 0)

    async def test_account_notifications(self):
        user = make_user()
        await self.engine.notify_account_approved(user)
        await self.engine.notify_registration_rejected(user)
        await self.engine.notify_account_deactivated(user)
        await self.engine.notify_account_reactivated(user)

        texts = [c.kwargs['text'] for c in self.bot.send_message.await_args_list]
        self.assertEqual(texts, [
            messages.account_approved('Budi Santoso', 'budi@example.com'),
            messages.registration_rejected('Budi Santoso'),
            messages.account_deactivated('Budi Santoso'),
            messages.account_reactivated('Budi Santoso', 'budi@example.com'),
        ])
        for c in self.bot.send_message.await_args_list:
            self.assertEqual(c.kwargs['chat_id'], '100')

    async def test_rejection_falls_back_to_username(self):
        await self.engine.notify_registration_rejected(make_user(full_name=None))
        self.assertIn('budi', self.bot.send_message.await_args.kwargs['text'])

    async def test_report_reviewed(self):
        report = Report(id=9, host_id=1, gmv_amount=1234567, screenshot_url='u', ocr_raw_text='t',
                        duration_label=None, status=ReportStatus.REJECTED, notes='Screenshot buram',
                        created_at='2026-01-01')
        await self.engine.notify_report_reviewed('100', report, verified=False)
        text = self.bot.send_message.await_args.kwargs['text']
        self.assertIn('#9', text)
        self.assertIn('Rp 1.234.567', text)
        self.assertIn('Screenshot buram', text)
        self.assertIn('REJECTED', text)
        self.assertIn(messages.NOT_DETECTED, text)


class TestMessages(unittest.TestCase):

    def test_summary_mentions_both_options(self):
        text = messages.screenshot_summary(15000, '1 jam')
        self.assertIn('Rp 15.000', text)
        self.assertIn('1 jam', text)
        self.assertIn('*Y*', text)
        self.assertIn('*N*', text)

    def test_summary_without_duration(self):
        self.assertIn(messages.NOT_DETECTED, messages.screenshot_summary(0, None))

    def test_ocr_failure_includes_provider_text(self):
        self.assertIn('E101: Timed out', messages.ocr_failed('E101: Timed out'))

    def test_user_values_are_markdown_escaped(self):
        text = messages.welcome_back('Budi_Santoso', 'budi_s@example.com')
        self.assertIn('budi\\_s@example.com', text)
        self.assertIn('Budi\\_Santoso', text)
        self.assertNotIn('*Budi', text)

        text = messages.registration_complete('Sari *Dewi*', 'sari_d@x.com')
        self.assertIn('Sari \\*Dewi\\*', text)
        self.assertNotIn(' sari_d@', text)

    def test_review_notes_are_markdown_escaped(self):
        text = messages.report_reviewed(1, 100, None, '2026-01-01', verified=False, notes='foto_buram [lagi]')
        self.assertIn('foto\\_buram \\[lagi]', text)

    def test_display_time_uses_stored_timestamp(self):
        self.assertEqual(messages.display_time('2026-03-04T05:06:07'), '04/03/2026 05:06:07')
        self.assertEqual(messages.display_time('kemarin_sore'), 'kemarin\\_sore')


if __name__ == '__main__':
    unittest.main()
