"""
Durable data models for hosts and reports.

Pure definitions -- no side effects, no imports of external services.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RegistrationStage(Enum):
    """How far a host has progressed through onboarding."""
    FULL_NAME = 'FULL_NAME'
    EMAIL = 'EMAIL'
    PASSWORD = 'PASSWORD'
    COMPLETED = 'COMPLETED'


class ReportStatus(Enum):
    """Review state of a report. Only PENDING is set by the bot."""
    PENDING = 'PENDING'
    VERIFIED = 'VERIFIED'
    REJECTED = 'REJECTED'


@dataclass
class UserRegistrationRecord:
    """A row in the users table."""
    id: int
    telegram_user_id: str
    username: str
    registration_stage: RegistrationStage
    full_name: Optional[str] = None
    email: Optional[str] = None
    password_hash: Optional[str] = None
    role: str = 'HOST'
    is_approved: bool = False
    is_active: bool = False
    created_at: str = ''
    updated_at: str = ''

    @property
    def has_name(self) -> bool:
        return self.registration_stage is not RegistrationStage.FULL_NAME and bool(self.full_name)

    @classmethod
    def from_row(cls, row) -> 'UserRegistrationRecord':
        """Create a record from a sqlite3.Row."""
        return cls(
            id=row['id'],
            telegram_user_id=row['telegram_user_id'],
            username=row['username'],
            registration_stage=RegistrationStage(row['registration_stage']),
            full_name=row['full_name'],
            email=row['email'],
            password_hash=row['password_hash'],
            role=row['role'],
            is_approved=bool(row['is_approved']),
            is_active=bool(row['is_active']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )


@dataclass
class Report:
    """A row in the reports table."""
    id: int
    host_id: int
    gmv_amount: float
    screenshot_url: str
    ocr_raw_text: str
    duration_label: Optional[str] = None
    status: ReportStatus = ReportStatus.PENDING
    notes: Optional[str] = None
    created_at: str = ''
    updated_at: str = ''

    @classmethod
    def from_row(cls, row) -> 'Report':
        """Create a report from a sqlite3.Row."""
        return cls(
            id=row['id'],
            host_id=row['host_id'],
            gmv_amount=row['gmv_amount'],
            screenshot_url=row['screenshot_url'],
            ocr_raw_text=row['ocr_raw_text'],
            duration_label=row['duration_label'],
            status=ReportStatus(row['status']),
            notes=row['notes'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )
