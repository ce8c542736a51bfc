"""
Conversation stages and the payloads staged between turns.
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional


class ConversationStage(Enum):
    """Named step that decides how the next message is interpreted."""
    NEW = 'NEW'
    WAITING_FULL_NAME = 'WAITING_FULL_NAME'
    WAITING_EMAIL = 'WAITING_EMAIL'
    WAITING_PASSWORD = 'WAITING_PASSWORD'
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    INACTIVE = 'INACTIVE'
    ACTIVE = 'ACTIVE'
    WAITING_CONFIRMATION = 'WAITING_CONFIRMATION'


# Stages where the next plain-text message is onboarding input
ONBOARDING_INPUT_STAGES = frozenset({
    ConversationStage.WAITING_FULL_NAME,
    ConversationStage.WAITING_EMAIL,
    ConversationStage.WAITING_PASSWORD,
})


@dataclass
class PendingReportPayload:
    """A parsed screenshot waiting for the host's Y/N."""
    owner_id: int
    gmv_amount: float
    screenshot_url: str
    ocr_raw_text: str
    duration_label: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'PendingReportPayload':
        return cls(
            owner_id=data['owner_id'],
            gmv_amount=data['gmv_amount'],
            screenshot_url=data['screenshot_url'],
            ocr_raw_text=data['ocr_raw_text'],
            duration_label=data.get('duration_label'),
        )
