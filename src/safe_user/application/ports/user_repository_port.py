"""Port for user persistence operations."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol
from uuid import UUID


class UserValidationError(ValueError):
    """Raised when user input fails shape or format checks."""


class DuplicateUserError(ValueError):
    """Raised when a user with the same external user_id already exists."""

    def __init__(self, *, user_id: str) -> None:
        super().__init__(f"user already exists: {user_id}")
        self.user_id = user_id


class UserNotFoundError(LookupError):
    """Raised when a target user cannot be found."""

    def __init__(self, *, id: UUID | str) -> None:
        super().__init__(f"user not found: {id}")
        self.id = id


class StoreUnavailableError(ConnectionError):
    """Raised when the relational store cannot be reached in time."""


MUTABLE_USER_FIELDS = frozenset(
    {
        "name",
        "last_name",
        "email",
        "age",
        "phone",
        "address",
        "place_birth",
        "birth_date",
    }
)


@dataclass(frozen=True)
class UserCreateInput:
    """Input payload for inserting one user row."""

    user_id: str
    name: str
    last_name: str
    email: str
    age: int
    phone: str
    birth_date: date
    credential_hash: str = field(repr=False)
    address: str | None = None
    place_birth: str | None = None


@dataclass(frozen=True)
class UserUpdateInput:
    """Partial update payload; only keys present in `changes` are written."""

    changes: Mapping[str, Any]


@dataclass(frozen=True)
class UserRecord:
    """User persistence model."""

    id: UUID
    user_id: str
    name: str
    last_name: str
    email: str
    age: int
    phone: str
    address: str | None
    place_birth: str | None
    birth_date: date
    credential_hash: str = field(repr=False)


class UserRepositoryPort(Protocol):
    """User repository contract."""

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user with a newly generated id."""

    async def get_by_id(self, *, id: UUID) -> UserRecord | None:
        """Return user by generated id or None."""

    async def get_by_user_id(self, *, user_id: str) -> UserRecord | None:
        """Return user by external user_id or None."""

    async def list_users(self) -> list[UserRecord]:
        """Return all users ordered by user_id."""

    async def update_user(self, *, id: UUID, payload: UserUpdateInput) -> UserRecord:
        """Apply mutable fields from payload and return the updated user."""

    async def delete_user(self, *, id: UUID) -> None:
        """Hard-delete one user."""
