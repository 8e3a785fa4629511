"""Application authentication service: registration, login and token-gated profile access."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from safe_user.application.dto.user_models import (
    RegistrationRequest,
    UserPatchRequest,
    UserProfile,
)
from safe_user.application.ports.password_hasher_port import (
    CorruptPasswordHashError,
    PasswordHasherPort,
)
from safe_user.application.ports.token_service_port import (
    IssuedToken,
    TokenError,
    TokenServicePort,
)
from safe_user.application.ports.user_repository_port import (
    UserCreateInput,
    UserNotFoundError,
    UserRecord,
    UserRepositoryPort,
    UserUpdateInput,
    UserValidationError,
)
from safe_user.domain.auth.credentials import (
    normalize_display_text,
    normalize_user_email,
    normalize_user_id,
    normalize_user_password,
)

logger = logging.getLogger(__name__)

_REQUIRED_DISPLAY_FIELDS = ("name", "last_name", "phone")
_OPTIONAL_DISPLAY_FIELDS = ("address", "place_birth")
# Logins for unknown user_ids verify against a hash of this value.
_DUMMY_PASSWORD = "safe-user-unknown-account"


class InvalidCredentialsError(PermissionError):
    """Raised when login fails; does not reveal whether the user exists."""

    def __init__(self) -> None:
        super().__init__("invalid credentials")


class UnauthorizedError(PermissionError):
    """Raised when a token is invalid, expired or no longer maps to a user."""

    def __init__(self) -> None:
        super().__init__("invalid or expired auth token")


@dataclass(frozen=True)
class RegistrationResult:
    """Newly created user plus the session token issued for it."""

    user: UserProfile
    token: IssuedToken


class AuthService:
    """Compose hasher, token service and user repository into account use-cases."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_service: TokenServicePort,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._token_service = token_service
        self._dummy_hash: str | None = None

    async def register(self, request: RegistrationRequest) -> RegistrationResult:
        """Create one account and issue its first token.

        `DuplicateUserError` from the repository propagates unchanged.
        """

        fields = _normalized_registration_fields(request)
        password = _validated(
            normalize_user_password,
            password=request.password.get_secret_value(),
        )
        credential_hash = await asyncio.to_thread(self._password_hasher.hash_password, password)

        record = await self._users.create_user(
            UserCreateInput(credential_hash=credential_hash, **fields)
        )
        token = self._token_service.issue(str(record.id))
        logger.info("user_registered id=%s user_id=%s", record.id, record.user_id)
        return RegistrationResult(user=UserProfile.from_record(record), token=token)

    async def login(self, *, user_id: str, password: str) -> IssuedToken:
        """Verify credentials and issue a token.

        Unknown user and wrong password both raise `InvalidCredentialsError`.
        """

        user = await self._users.get_by_user_id(user_id=user_id.strip())
        if user is None:
            dummy_hash = await self._dummy_credential_hash()
            await asyncio.to_thread(
                self._password_hasher.verify_password,
                password=password,
                password_hash=dummy_hash,
            )
            logger.info("login_failed reason=invalid_credentials")
            raise InvalidCredentialsError()

        try:
            is_valid = await asyncio.to_thread(
                self._password_hasher.verify_password,
                password=password,
                password_hash=user.credential_hash,
            )
        except CorruptPasswordHashError:
            logger.error("login_credential_hash_corrupt id=%s", user.id)
            raise

        if not is_valid:
            logger.info("login_failed reason=invalid_credentials id=%s", user.id)
            raise InvalidCredentialsError()

        logger.info("login_success id=%s", user.id)
        return self._token_service.issue(str(user.id))

    async def authenticate(self, token: str) -> UserProfile:
        """Resolve a bearer token to the user it was issued for."""

        user = await self._resolve_user(token)
        return UserProfile.from_record(user)

    async def update_profile(self, token: str, patch: UserPatchRequest) -> UserProfile:
        """Apply a partial profile update to the token's user."""

        user = await self._resolve_user(token)
        changes = _normalized_changes(patch.changes())
        try:
            updated = await self._users.update_user(
                id=user.id,
                payload=UserUpdateInput(changes=changes),
            )
        except UserNotFoundError as exc:
            raise UnauthorizedError() from exc
        return UserProfile.from_record(updated)

    async def delete_account(self, token: str) -> None:
        """Hard-delete the token's user. Outstanding tokens stop resolving."""

        user = await self._resolve_user(token)
        try:
            await self._users.delete_user(id=user.id)
        except UserNotFoundError as exc:
            raise UnauthorizedError() from exc
        logger.info("account_deleted id=%s", user.id)

    async def get_user(self, id: UUID) -> UserProfile:
        """Return one user by generated id or raise `UserNotFoundError`."""

        user = await self._users.get_by_id(id=id)
        if user is None:
            raise UserNotFoundError(id=id)
        return UserProfile.from_record(user)

    async def get_user_by_user_id(self, user_id: str) -> UserProfile:
        """Return one user by external user_id or raise `UserNotFoundError`."""

        user = await self._users.get_by_user_id(user_id=user_id.strip())
        if user is None:
            raise UserNotFoundError(id=user_id)
        return UserProfile.from_record(user)

    async def list_users(self) -> list[UserProfile]:
        """Return every user profile ordered by user_id."""

        return [UserProfile.from_record(user) for user in await self._users.list_users()]

    async def _dummy_credential_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(
                self._password_hasher.hash_password,
                _DUMMY_PASSWORD,
            )
        return self._dummy_hash

    async def _resolve_user(self, token: str) -> UserRecord:
        try:
            claims = self._token_service.verify(token)
        except TokenError as exc:
            logger.info("auth_token_rejected reason=%s", type(exc).__name__)
            raise UnauthorizedError() from exc

        try:
            user_id = UUID(claims.subject)
        except ValueError as exc:
            logger.info("auth_token_rejected reason=subject_not_uuid")
            raise UnauthorizedError() from exc

        user = await self._users.get_by_id(id=user_id)
        if user is None:
            logger.info("auth_token_rejected reason=user_missing id=%s", user_id)
            raise UnauthorizedError()
        return user


def _validated(normalizer: Callable[..., Any], **kwargs: Any) -> Any:
    try:
        return normalizer(**kwargs)
    except ValueError as exc:
        raise UserValidationError(str(exc)) from exc


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _normalized_registration_fields(request: RegistrationRequest) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "user_id": _validated(normalize_user_id, user_id=request.user_id),
        "email": _validated(normalize_user_email, email=request.email),
        "age": request.age,
        "birth_date": request.birth_date,
    }
    for name in _REQUIRED_DISPLAY_FIELDS:
        fields[name] = _validated(
            normalize_display_text,
            field_name=name,
            value=getattr(request, name),
        )
    for name in _OPTIONAL_DISPLAY_FIELDS:
        fields[name] = _optional_text(getattr(request, name))
    return fields


def _normalized_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for name, value in changes.items():
        if name == "email":
            if value is None:
                raise UserValidationError("email cannot be null")
            normalized[name] = _validated(normalize_user_email, email=value)
        elif name in _REQUIRED_DISPLAY_FIELDS:
            if value is None:
                raise UserValidationError(f"{name} cannot be null")
            normalized[name] = _validated(normalize_display_text, field_name=name, value=value)
        elif name in _OPTIONAL_DISPLAY_FIELDS:
            normalized[name] = _optional_text(value)
        elif value is None:
            raise UserValidationError(f"{name} cannot be null")
        else:
            normalized[name] = value
    return normalized
