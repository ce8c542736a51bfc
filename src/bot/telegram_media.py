"""
Telegram media access: resolve a file id to a download location and fetch it.
"""
import asyncio

import requests
import config

TELEGRAM_FILE_BASE = "https://api.telegram.org/file/bot{token}/{path}"


class TelegramMediaClient:
    """Wraps Bot.get_file plus a plain HTTP download."""

    def __init__(self, bot=None, bot_token: str = None, timeout_seconds: int = None):
        self._bot_token = bot_token or config.TELEGRAM_BOT_TOKEN
        self._bot = bot
        self.timeout_seconds = timeout_seconds or config.MEDIA_DOWNLOAD_TIMEOUT_SECONDS

    @property
    def bot(self):
        if self._bot is None:
            from telegram import Bot
            self._bot = Bot(token=self._bot_token)
        return self._bot

    async def resolve_file_location(self, file_id: str) -> str:
        """Ask Telegram where the file lives; returns a downloadable URL."""
        tg_file = await self.bot.get_file(file_id)
        file_path = tg_file.file_path
        if not file_path:
            raise ValueError(f"Telegram returned no file_path for {file_id}")
        if file_path.startswith('http'):
            return file_path
        return TELEGRAM_FILE_BASE.format(token=self._bot_token, path=file_path)

    async def download(self, location: str) -> bytes:
        """Fetch the file content."""
        return await asyncio.to_thread(self._http_get, location)

    def _http_get(self, location: str) -> bytes:
        response = requests.get(location, timeout=self.timeout_seconds)
        response.raise_for_status()
        return response.content
