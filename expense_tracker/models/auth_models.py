"""
Authentication Models.

Pydantic models and enumerations for the auth request/response
contract between ``AuthService`` and the command/controller layer.
Every auth operation returns a structured, inspectable result rather
than raw strings or exception side-channels.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel

from expense_tracker.models.user import User


class AuthErrorCode(StrEnum):
    """Categories of sign-in failure the caller may react to."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    NETWORK_ERROR = "network_error"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    SESSION_EXPIRED = "session_expired"
    UNKNOWN_ERROR = "unknown_error"


# Substrings of Supabase Auth error messages/codes -> (code, human message).
SUPABASE_ERROR_MAP: dict[str, tuple[AuthErrorCode, str]] = {
    "invalid_credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid login credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid_grant": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "email not confirmed": (
        AuthErrorCode.EMAIL_NOT_CONFIRMED,
        "Please confirm your email address before signing in.",
    ),
}


class AuthResult(BaseModel):
    """Unified response for sign-in and session restoration.

    Attributes
    ----------
    success:
        ``True`` when a user is now signed in.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    user:
        The signed-in user on success.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    user: Optional[User] = None
