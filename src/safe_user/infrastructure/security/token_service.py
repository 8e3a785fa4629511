"""JWT session token adapter.

Tokens are HS256-signed JWTs carrying `sub`, `iat` and `exp` (integer epoch
seconds). Verification is stateless: nothing is persisted server side and an
issued token stays valid until `exp`.

Expiry is evaluated against the injected clock instead of PyJWT's wall clock,
so the library's own time checks are disabled and re-applied here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from safe_user.application.ports.token_service_port import (
    IssuedToken,
    TokenClaims,
    TokenExpiredError,
    TokenMalformedError,
    TokenServicePort,
    TokenSignatureInvalidError,
)

DEFAULT_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "iat", "exp")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class TokenSigningConfig:
    """Immutable signing material and validity window for issued tokens."""

    secret: str = field(repr=False)
    ttl: timedelta
    algorithm: str = DEFAULT_ALGORITHM
    leeway: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("token signing secret cannot be empty")
        if self.ttl <= timedelta(0):
            raise ValueError("token ttl must be positive")
        if self.leeway < timedelta(0):
            raise ValueError("token leeway cannot be negative")


class JwtTokenService(TokenServicePort):
    """Issue and verify signed, time-bounded session tokens."""

    def __init__(
        self,
        config: TokenSigningConfig,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._clock = clock

    def issue(self, subject: str) -> IssuedToken:
        """Sign a token for subject valid for the configured ttl."""

        if not subject:
            raise ValueError("token subject cannot be empty")

        issued_at = int(self._clock().timestamp())
        expires_at = issued_at + int(self._config.ttl.total_seconds())
        payload = {"sub": subject, "iat": issued_at, "exp": expires_at}
        token = jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)
        return IssuedToken(token=token, expires_at=datetime.fromtimestamp(expires_at, tz=UTC))

    def verify(self, token: str) -> TokenClaims:
        """Check structure, signature and expiry and return the claim set."""

        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(_REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenSignatureInvalidError("token signature is invalid") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformedError("token could not be parsed") from exc

        subject = payload["sub"]
        issued_at = _epoch_claim(payload, "iat")
        expires_at = _epoch_claim(payload, "exp")
        if not isinstance(subject, str) or not subject:
            raise TokenMalformedError("token subject is missing")

        now = self._clock().timestamp()
        if now >= expires_at + self._config.leeway.total_seconds():
            raise TokenExpiredError("token has expired")

        return TokenClaims(
            subject=subject,
            issued_at=datetime.fromtimestamp(issued_at, tz=UTC),
            expires_at=datetime.fromtimestamp(expires_at, tz=UTC),
        )


def _epoch_claim(payload: dict[str, Any], name: str) -> int:
    value = payload[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TokenMalformedError(f"token claim {name} is not an epoch timestamp")
    return value
