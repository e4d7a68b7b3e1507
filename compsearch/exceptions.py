"""Exception hierarchy for compsearch."""

from __future__ import annotations

from typing import Optional


class CompSearchError(Exception):
    """Base exception for all compsearch errors."""


class ConfigurationError(CompSearchError):
    """Raised when configuration is invalid or missing."""


class TransportError(CompSearchError):
    """Raised on network failures or an unexpected HTTP status from the MLS."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(CompSearchError):
    """Raised when the MLS answers with a non-zero RETS reply code."""

    def __init__(self, code: str, reply_text: str = "Unknown", action: str = "login") -> None:
        super().__init__(f"RETS {action} error {code}: {reply_text}")
        self.code = code
        self.reply_text = reply_text
        self.action = action
