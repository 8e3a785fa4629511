"""SQLAlchemy adapter for user persistence."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from functools import partial
from typing import Any, TypeVar, cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import CursorResult, RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from safe_user.application.ports.user_repository_port import (
    MUTABLE_USER_FIELDS,
    DuplicateUserError,
    StoreUnavailableError,
    UserCreateInput,
    UserNotFoundError,
    UserRecord,
    UserRepositoryPort,
    UserUpdateInput,
    UserValidationError,
)
from safe_user.infrastructure.db.metadata import USER_ID_CONSTRAINT, users

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REQUIRED_TEXT_FIELDS = ("user_id", "name", "last_name", "email", "phone")
_OPTIONAL_TEXT_FIELDS = ("address", "place_birth")


def _is_duplicate_user_id_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return USER_ID_CONSTRAINT in message or "users.userid" in message


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate connectivity and pool-checkout failures to `StoreUnavailableError`."""

    try:
        yield
    except (sa_exc.TimeoutError, sa_exc.OperationalError, sa_exc.InterfaceError) as exc:
        logger.warning("user_store_unavailable operation=%s error=%s", operation, exc)
        raise StoreUnavailableError(f"user store unavailable during {operation}") from exc
    except sa_exc.DBAPIError as exc:
        if not exc.connection_invalidated:
            raise
        logger.warning("user_store_unavailable operation=%s error=%s", operation, exc)
        raise StoreUnavailableError(f"user store unavailable during {operation}") from exc
    except OSError as exc:
        logger.warning("user_store_unavailable operation=%s error=%s", operation, exc)
        raise StoreUnavailableError(f"user store unavailable during {operation}") from exc


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions.

    Every call checks out its own session, so the pool behind the session
    factory is the only shared resource. Writes are shielded from caller
    cancellation: once a statement starts it is committed or rolled back
    before the connection goes back to the pool.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._detached_writes: set[asyncio.Task[Any]] = set()

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert a new user row with a generated id and return it."""

        _validate_create_input(payload)

        # The unique constraint is authoritative; this lookup only avoids a
        # doomed insert in the common case.
        if await self.get_by_user_id(user_id=payload.user_id) is not None:
            raise DuplicateUserError(user_id=payload.user_id)

        with _store_errors("create_user"):
            record = await self._shielded(self._insert_user(payload), operation="create_user")

        logger.info("user_created id=%s user_id=%s", record.id, record.user_id)
        return record

    async def get_by_id(self, *, id: UUID) -> UserRecord | None:
        """Return user by generated id or None."""

        statement = sa.select(*users.c).where(users.c.id == id).limit(1)
        return await self._fetch_one(statement, operation="get_by_id")

    async def get_by_user_id(self, *, user_id: str) -> UserRecord | None:
        """Return user by external user_id or None."""

        statement = sa.select(*users.c).where(users.c.user_id == user_id).limit(1)
        return await self._fetch_one(statement, operation="get_by_user_id")

    async def list_users(self) -> list[UserRecord]:
        """Return all users ordered by external user_id."""

        statement = sa.select(*users.c).order_by(users.c.user_id)
        with _store_errors("list_users"):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.mappings().all()
        return [_to_user_record(row) for row in rows]

    async def update_user(self, *, id: UUID, payload: UserUpdateInput) -> UserRecord:
        """Apply the mutable fields present in payload and return the updated row."""

        values = _validated_changes(payload.changes)
        if not values:
            current = await self.get_by_id(id=id)
            if current is None:
                raise UserNotFoundError(id=id)
            return current

        statement = (
            sa.update(users)
            .where(users.c.id == id)
            .values(**values)
            .returning(*users.c)
        )
        with _store_errors("update_user"):
            row = await self._shielded(
                self._write_returning(statement),
                operation="update_user",
            )

        if row is None:
            raise UserNotFoundError(id=id)
        logger.info("user_updated id=%s fields=%s", id, ",".join(sorted(values)))
        return _to_user_record(row)

    async def delete_user(self, *, id: UUID) -> None:
        """Hard-delete one user; deleting a missing id raises `UserNotFoundError`."""

        statement = sa.delete(users).where(users.c.id == id)
        with _store_errors("delete_user"):
            deleted = await self._shielded(
                self._write_rowcount(statement),
                operation="delete_user",
            )

        if deleted == 0:
            raise UserNotFoundError(id=id)
        logger.info("user_deleted id=%s", id)

    async def _shielded(self, write: Coroutine[Any, Any, T], *, operation: str) -> T:
        """Run a write that finishes even if the awaiting caller is cancelled."""

        task = asyncio.ensure_future(write)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            self._detached_writes.add(task)
            task.add_done_callback(partial(self._finish_detached_write, operation))
            raise

    def _finish_detached_write(self, operation: str, task: asyncio.Task[Any]) -> None:
        self._detached_writes.discard(task)
        if task.cancelled():
            logger.warning("user_write_cancelled_after_caller_cancel operation=%s", operation)
            return
        error = task.exception()
        if error is not None:
            logger.warning(
                "user_write_failed_after_caller_cancel operation=%s error=%s",
                operation,
                error,
            )
            return
        logger.info("user_write_completed_after_caller_cancel operation=%s", operation)

    async def _insert_user(self, payload: UserCreateInput) -> UserRecord:
        statement = (
            sa.insert(users)
            .values(
                id=uuid4(),
                user_id=payload.user_id,
                name=payload.name,
                last_name=payload.last_name,
                email=payload.email,
                age=payload.age,
                phone=payload.phone,
                address=payload.address,
                birth_date=payload.birth_date,
                place_birth=payload.place_birth,
                credential_hash=payload.credential_hash,
            )
            .returning(*users.c)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_user_id_error(error):
                    logger.info("user_create_conflict user_id=%s", payload.user_id)
                    raise DuplicateUserError(user_id=payload.user_id) from error
                raise

        return _to_user_record(row)

    async def _write_returning(self, statement: sa.Update) -> RowMapping | None:
        async with self._session_factory() as session:
            result = await session.execute(statement)
            row = result.mappings().first()
            await session.commit()
        return row

    async def _write_rowcount(self, statement: sa.Delete) -> int:
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()
        return int(result.rowcount or 0)

    async def _fetch_one(
        self,
        statement: sa.Select[Any],
        *,
        operation: str,
    ) -> UserRecord | None:
        with _store_errors(operation):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)


def _validate_create_input(payload: UserCreateInput) -> None:
    for name in _REQUIRED_TEXT_FIELDS:
        _check_text(name, getattr(payload, name), required=True)
    for name in _OPTIONAL_TEXT_FIELDS:
        _check_text(name, getattr(payload, name), required=False)
    _check_age(payload.age)
    _check_birth_date(payload.birth_date)
    if not payload.credential_hash:
        raise UserValidationError("credential_hash cannot be empty")


def _validated_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Keep mutable fields only and check each one; identity keys are dropped."""

    values = {name: value for name, value in changes.items() if name in MUTABLE_USER_FIELDS}
    for name, value in values.items():
        if name == "age":
            _check_age(value)
        elif name == "birth_date":
            _check_birth_date(value)
        else:
            _check_text(name, value, required=name not in _OPTIONAL_TEXT_FIELDS)
    return values


def _check_text(name: str, value: object, *, required: bool) -> None:
    if value is None:
        if required:
            raise UserValidationError(f"{name} is required")
        return
    if not isinstance(value, str):
        raise UserValidationError(f"{name} must be a string")
    if required and not value.strip():
        raise UserValidationError(f"{name} cannot be blank")
    max_length = users.c[name].type.length
    if max_length is not None and len(value) > max_length:
        raise UserValidationError(f"{name} cannot exceed {max_length} characters")


def _check_age(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise UserValidationError("age must be a non-negative integer")


def _check_birth_date(value: object) -> None:
    if not isinstance(value, date):
        raise UserValidationError("birth_date must be a date")


def _to_user_record(row: RowMapping) -> UserRecord:
    raw_id = row[users.c.id]
    return UserRecord(
        id=raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id)),
        user_id=cast(str, row[users.c.user_id]),
        name=cast(str, row[users.c.name]),
        last_name=cast(str, row[users.c.last_name]),
        email=cast(str, row[users.c.email]),
        age=int(row[users.c.age]),
        phone=cast(str, row[users.c.phone]),
        address=cast("str | None", row[users.c.address]),
        place_birth=cast("str | None", row[users.c.place_birth]),
        birth_date=cast(date, row[users.c.birth_date]),
        credential_hash=cast(str, row[users.c.credential_hash]),
    )
