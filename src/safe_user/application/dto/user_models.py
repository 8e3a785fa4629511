"""Pydantic models for user registration, login and profile payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic.alias_generators import to_camel

from safe_user.application.ports.user_repository_port import UserRecord, UserValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection.

    Fields accept both snake_case names and camelCase wire aliases.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class RegistrationRequest(StrictModel):
    """New account payload: profile fields plus the plaintext credential."""

    user_id: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=0)
    phone: str = Field(min_length=1, max_length=20)
    birth_date: date
    address: str | None = Field(default=None, max_length=100)
    place_birth: str | None = Field(default=None, max_length=100)
    password: SecretStr = Field(min_length=1)


class LoginRequest(StrictModel):
    """Credential payload for token issuance."""

    user_id: str = Field(min_length=1, max_length=50)
    password: SecretStr = Field(min_length=1)


class UserPatchRequest(StrictModel):
    """Partial profile update.

    Unknown keys, including attempts to set `id` or `userId`, are dropped
    rather than rejected so identity fields can never flow into an update.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0)
    phone: str | None = Field(default=None, min_length=1, max_length=20)
    birth_date: date | None = None
    address: str | None = Field(default=None, max_length=100)
    place_birth: str | None = Field(default=None, max_length=100)

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller explicitly set."""

        return self.model_dump(exclude_unset=True)


class UserProfile(StrictModel):
    """Caller-facing user view; never carries the credential hash."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

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

    @classmethod
    def from_record(cls, record: UserRecord) -> UserProfile:
        return cls(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            last_name=record.last_name,
            email=record.email,
            age=record.age,
            phone=record.phone,
            address=record.address,
            place_birth=record.place_birth,
            birth_date=record.birth_date,
        )


def parse_request(model: type[ModelT], payload: Mapping[str, Any]) -> ModelT:
    """Validate a deserialized transport payload into `model`.

    Pydantic failures become `UserValidationError` naming the offending fields
    without echoing submitted values.
    """

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        raise UserValidationError(f"invalid fields: {', '.join(fields)}") from exc
