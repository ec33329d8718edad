"""
Error taxonomy and helpers for consistent error message extraction.

Only ``ValidationError``, ``RenderError`` and ``SessionNotFound`` are
meant to cross the service boundary.  Classification and oracle
failures are absorbed into fallback data before they reach a caller,
and storage failures are logged and swallowed by the analyze flow.
"""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for every error raised by the service."""


class ValidationError(SentinelError):
    """Bad input supplied by the caller."""


class RenderError(SentinelError):
    """The page could not be rendered.

    Attributes:
        url: The page that failed to load.
        detail: Diagnostic detail from the last load attempt.
    """

    def __init__(self, message: str, *, url: str = "", detail: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.detail = detail


class LoadTimeout(RenderError):
    """Every load strategy timed out."""


class LoadBlocked(RenderError):
    """The page refused or aborted every load strategy."""


class OracleError(SentinelError):
    """A language-model call failed, timed out, or was not configured."""


class ClassificationDegraded(SentinelError):
    """The oracle tier could not produce a usable verdict."""


class StorageError(SentinelError):
    """A persistence backend operation failed."""


class SessionNotFound(SentinelError):
    """No chat session exists for the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"
