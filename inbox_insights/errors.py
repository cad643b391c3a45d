"""
Error taxonomy for the inbox insights pipelines.

Only ConfigurationError is fatal to the process. Adapter errors end the
current run, stage and parse errors are recovered at the stage boundary,
and persistence errors are logged and swallowed by the result store.
"""

from typing import Optional


class InboxInsightsError(Exception):
    """Base class for all application errors."""


class ConfigurationError(InboxInsightsError):
    """Required configuration is missing or invalid at startup."""


class AdapterError(InboxInsightsError):
    """An external provider adapter could not complete a request."""


class MailboxNotInitializedError(AdapterError):
    """The mailbox adapter was used before initialize() succeeded."""

    def __init__(self, message: str = "Gmail API not initialized. Call initialize() first."):
        super().__init__(message)


class MailboxAuthError(AdapterError):
    """The OAuth handshake with the mailbox provider failed."""


class StageError(InboxInsightsError):
    """A pipeline stage failed or is not registered."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class ParseError(InboxInsightsError):
    """No recovery strategy could turn model output into structured data."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class PersistenceError(InboxInsightsError):
    """Writing an output artifact failed."""
