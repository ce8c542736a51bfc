"""
Onboarding flow for new hosts: full name -> email -> password -> approval.

The durable user record is the source of truth for where a host is in the
flow. Ephemeral state only caches the current stage between turns, so the
flow resumes correctly after the state expires or the process restarts.
"""
import asyncio
import re
from typing import Optional

from bot.errors import ValidationError
from conversation import messages
from conversation.models import ConversationStage, ONBOARDING_INPUT_STAGES
from storage.host_db import hash_password
from storage.models import RegistrationStage, UserRegistrationRecord
from utils.logger import get_logger

MIN_NAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 50

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_full_name(text: str) -> str:
    name = (text or '').strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(f"name too short: {len(name)} chars", messages.NAME_TOO_SHORT)
    return name


def validate_email(text: str) -> str:
    email = (text or '').strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("malformed email", messages.INVALID_EMAIL)
    return email.lower()


def validate_password(text: str) -> str:
    password = text or ''
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("password too short", messages.PASSWORD_TOO_SHORT)
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError("password too long", messages.PASSWORD_TOO_LONG)
    return password


def derive_stage(record: Optional[UserRegistrationRecord]) -> ConversationStage:
    """Map durable registration fields to a conversation stage."""
    if record is None:
        return ConversationStage.NEW
    if record.registration_stage is RegistrationStage.FULL_NAME:
        return ConversationStage.WAITING_FULL_NAME
    if record.registration_stage is RegistrationStage.EMAIL:
        return ConversationStage.WAITING_EMAIL
    if record.registration_stage is RegistrationStage.PASSWORD:
        return ConversationStage.WAITING_PASSWORD
    if not record.is_approved:
        return ConversationStage.PENDING_APPROVAL
    if not record.is_active:
        return ConversationStage.INACTIVE
    return ConversationStage.ACTIVE


def _stage_payload(record: UserRegistrationRecord) -> dict:
    payload = {}
    if record.full_name:
        payload['full_name'] = record.full_name
    if record.email:
        payload['email'] = record.email
    return payload


class OnboardingFlow:
    """Drives registration of a host through the chat."""

    def __init__(self, store, host_db, notifier, logger=None):
        self.store = store
        self.host_db = host_db
        self.notifier = notifier
        self.logger = logger or get_logger()

    async def _load(self, user_id) -> Optional[UserRegistrationRecord]:
        return await asyncio.to_thread(self.host_db.get_user_by_telegram_id, str(user_id))

    async def start(self, chat_id, user_id, username: str) -> ConversationStage:
        """Handle /start: register a new identity or resume from durable fields."""
        self.store.clear(user_id)
        record = await self._load(user_id)

        if record is None:
            await asyncio.to_thread(
                self.host_db.create_pending_user, str(user_id), username or f"user_{user_id}"
            )
            self.store.set(user_id, ConversationStage.WAITING_FULL_NAME)
            await self.notifier.send(chat_id, messages.WELCOME_NEW_USER)
            self.logger.info(f"New user {user_id} started registration", component="Onboarding")
            return ConversationStage.WAITING_FULL_NAME

        stage = derive_stage(record)
        if stage in ONBOARDING_INPUT_STAGES:
            self.store.set(user_id, stage, _stage_payload(record))

        if stage is ConversationStage.WAITING_FULL_NAME:
            await self.notifier.send(chat_id, messages.ASK_FULL_NAME)
        elif stage is ConversationStage.WAITING_EMAIL:
            await self.notifier.send(chat_id, messages.ask_email(record.full_name))
        elif stage is ConversationStage.WAITING_PASSWORD:
            await self.notifier.send(chat_id, messages.ask_password(record.full_name, record.email))
        elif stage is ConversationStage.PENDING_APPROVAL:
            await self.notifier.send(chat_id, messages.pending_approval(record.full_name, record.email))
        elif stage is ConversationStage.INACTIVE:
            await self.notifier.send(chat_id, messages.account_inactive(record.full_name))
        else:
            await self.notifier.send(chat_id, messages.welcome_back(record.full_name, record.email))

        self.logger.info(f"User {user_id} resumed at {stage.value}", component="Onboarding")
        return stage

    async def current_stage(self, user_id) -> Optional[ConversationStage]:
        """
        Onboarding stage awaiting text input, or None.

        Uses the cached state when present, otherwise re-derives the stage from
        the user record and re-seeds the cache.
        """
        state = self.store.get(user_id)
        if state and state.stage in ONBOARDING_INPUT_STAGES:
            return state.stage

        record = await self._load(user_id)
        stage = derive_stage(record)
        if stage not in ONBOARDING_INPUT_STAGES:
            return None
        self.store.set(user_id, stage, _stage_payload(record))
        return stage

    async def handle_text(self, chat_id, user_id, username: str, text: str,
                          stage: ConversationStage) -> ConversationStage:
        """Apply one text input to the given stage; returns the resulting stage."""
        handlers = {
            ConversationStage.WAITING_FULL_NAME: self._handle_full_name,
            ConversationStage.WAITING_EMAIL: self._handle_email,
            ConversationStage.WAITING_PASSWORD: self._handle_password,
        }
        try:
            return await handlers[stage](chat_id, user_id, username, text)
        except ValidationError as e:
            self.logger.info(f"User {user_id} input rejected at {stage.value}: {e}", component="Onboarding")
            await self.notifier.send(chat_id, e.user_message)
            return stage

    async def _payload(self, user_id) -> dict:
        state = self.store.get(user_id)
        if state and state.payload:
            return dict(state.payload)
        record = await self._load(user_id)
        return _stage_payload(record) if record else {}

    async def _handle_full_name(self, chat_id, user_id, username, text) -> ConversationStage:
        full_name = validate_full_name(text)
        await asyncio.to_thread(
            self.host_db.update_full_name, str(user_id), full_name, username or f"user_{user_id}"
        )
        self.store.set(user_id, ConversationStage.WAITING_EMAIL, {'full_name': full_name})
        await self.notifier.send(chat_id, messages.ask_email(after_save=True))
        self.logger.info(f"Full name saved for user {user_id}", component="Onboarding")
        return ConversationStage.WAITING_EMAIL

    async def _handle_email(self, chat_id, user_id, username, text) -> ConversationStage:
        email = validate_email(text)
        if await asyncio.to_thread(self.host_db.email_taken, email, str(user_id)):
            raise ValidationError("email already registered", messages.EMAIL_TAKEN)

        await asyncio.to_thread(self.host_db.update_email, str(user_id), email)
        payload = await self._payload(user_id)
        payload['email'] = email
        self.store.set(user_id, ConversationStage.WAITING_PASSWORD, payload)
        await self.notifier.send(chat_id, messages.ask_password(after_save=True))
        self.logger.info(f"Email saved for user {user_id}", component="Onboarding")
        return ConversationStage.WAITING_PASSWORD

    async def _handle_password(self, chat_id, user_id, username, text) -> ConversationStage:
        password = validate_password(text)
        password_hash = await asyncio.to_thread(hash_password, password)
        payload = await self._payload(user_id)

        await asyncio.to_thread(self.host_db.set_password_hash, str(user_id), password_hash)
        self.store.clear(user_id)

        full_name = payload.get('full_name') or username
        await self.notifier.send(chat_id, messages.registration_complete(full_name, payload.get('email', '')))
        self.logger.info(f"Registration completed for user {user_id}", component="Onboarding")
        return ConversationStage.PENDING_APPROVAL
