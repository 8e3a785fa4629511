"""Port for password hashing and verification."""

from __future__ import annotations

from typing import Protocol

from safe_user.application.ports.user_repository_port import UserValidationError


class InvalidPasswordInputError(UserValidationError):
    """Raised when a plaintext password cannot be hashed."""


class CorruptPasswordHashError(RuntimeError):
    """Raised when a stored password hash is not a well-formed hash record."""


class PasswordHasherPort(Protocol):
    """Password hashing/verification contract."""

    def hash_password(self, password: str) -> str:
        """Hash plaintext password for storage."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Verify plaintext password against stored hash."""
