"""Bcrypt password hasher adapter."""

from __future__ import annotations

import logging
import re

import bcrypt

from safe_user.application.ports.password_hasher_port import (
    CorruptPasswordHashError,
    InvalidPasswordInputError,
    PasswordHasherPort,
)

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12
# bcrypt only consumes the first 72 bytes of input.
_MAX_PASSWORD_BYTES = 72
_BCRYPT_HASH_PATTERN = re.compile(r"^\$2[abxy]?\$(0[4-9]|[12][0-9]|3[01])\$[./A-Za-z0-9]{53}$")


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt."""

    def __init__(self, *, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        if not password:
            raise InvalidPasswordInputError("password cannot be empty")
        encoded = password.encode("utf-8")
        if len(encoded) > _MAX_PASSWORD_BYTES:
            raise InvalidPasswordInputError(
                f"password cannot exceed {_MAX_PASSWORD_BYTES} bytes"
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if not _BCRYPT_HASH_PATTERN.match(password_hash):
            logger.error("password_hash_corrupt length=%s", len(password_hash))
            raise CorruptPasswordHashError("stored password hash is not a bcrypt record")

        encoded = password.encode("utf-8")
        if not encoded or len(encoded) > _MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError as exc:
            logger.error("password_hash_corrupt length=%s", len(password_hash))
            raise CorruptPasswordHashError("stored password hash is not a bcrypt record") from exc
