"""Port for signed session token issuance and verification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class TokenError(ValueError):
    """Base class for token verification failures."""


class TokenMalformedError(TokenError):
    """Raised when a token cannot be parsed into a claim set."""


class TokenSignatureInvalidError(TokenError):
    """Raised when a token signature does not match its content."""


class TokenExpiredError(TokenError):
    """Raised when a token is past its expiry instant."""


@dataclass(frozen=True)
class IssuedToken:
    """Signed token plus the instant it stops being valid."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    """Verified claim set carried by a token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


class TokenServicePort(Protocol):
    """Stateless token contract."""

    def issue(self, subject: str) -> IssuedToken:
        """Sign a new token for subject."""

    def verify(self, token: str) -> TokenClaims:
        """Return verified claims or raise a `TokenError` subclass."""
