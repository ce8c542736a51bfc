"""
Pydantic models for the subset of the Telegram Update envelope the bot reads.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    is_bot: bool = False
    first_name: str = ''
    username: Optional[str] = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    type: str = 'private'


class PhotoSize(BaseModel):
    """One resolution variant of a photo."""
    model_config = ConfigDict(extra='ignore')

    file_id: str
    file_unique_id: str = ''
    width: int = 0
    height: int = 0
    file_size: Optional[int] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: TelegramUser = Field(alias='from')
    date: Optional[int] = None
    text: Optional[str] = None
    caption: Optional[str] = None
    photo: List[PhotoSize] = Field(default_factory=list)

    def largest_photo(self) -> Optional[PhotoSize]:
        """Highest-resolution variant (ties broken by byte size)."""
        if not self.photo:
            return None
        return max(self.photo, key=lambda p: (p.width * p.height, p.file_size or 0))

    @property
    def display_name(self) -> str:
        return self.from_user.username or self.from_user.first_name or f"user_{self.from_user.id}"


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra='ignore')

    update_id: int
    message: Optional[TelegramMessage] = None


class EventKind(str, Enum):
    """How the dispatcher classifies an inbound message."""
    COMMAND = 'command'
    TEXT = 'text'
    PHOTO = 'photo'
    OTHER = 'other'


def classify(message: TelegramMessage) -> EventKind:
    if message.text is not None:
        if message.text.strip().startswith('/'):
            return EventKind.COMMAND
        return EventKind.TEXT
    if message.photo:
        return EventKind.PHOTO
    return EventKind.OTHER
