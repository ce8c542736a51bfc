"""
Exception taxonomy for the conversation engine.

Each class maps to one handling policy in the event dispatcher:
ValidationError re-prompts, AccessDeniedError ends the event with a message,
TransientProviderError is retried, ProviderConfigurationError is surfaced
without retry, PersistenceError is reported generically. Anything else is an
unexpected error and is caught at the per-event boundary.
"""


class ReportBotError(Exception):
    """Base class for errors the bot knows how to report to a user."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ValidationError(ReportBotError):
    """Malformed onboarding input (name, email, password)."""


class AccessDeniedError(ReportBotError):
    """Unregistered, unapproved or inactive identity tried to submit."""


class TransientProviderError(ReportBotError):
    """OCR or network failure that may succeed on retry."""


class ProviderConfigurationError(ReportBotError):
    """Credential or configuration failure at the OCR provider; never retried."""


class PersistenceError(ReportBotError):
    """Durable store read/write failed."""
