"""Shared normalization helpers for user identity and credential inputs."""

from __future__ import annotations

import re

_EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)


def normalize_user_id(*, user_id: str) -> str:
    """Normalize one external user identifier and reject blank values."""

    normalized = user_id.strip()
    if not normalized:
        raise ValueError("user_id cannot be blank")
    return normalized


def normalize_user_email(*, email: str) -> str:
    """Normalize one user email and reject blank or malformed values."""

    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be blank")
    local_part = normalized.rpartition("@")[0]
    if (
        not _EMAIL_PATTERN.match(normalized)
        or local_part.startswith(".")
        or local_part.endswith(".")
        or ".." in local_part
    ):
        raise ValueError("email is not a valid address")
    return normalized


def normalize_user_password(*, password: str) -> str:
    """Reject blank plaintext passwords.

    Surrounding whitespace is part of the secret and is preserved.
    """

    if not password.strip():
        raise ValueError("password cannot be blank")
    return password


def normalize_display_text(*, field_name: str, value: str) -> str:
    """Strip one required display string and reject blank values."""

    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} cannot be blank")
    return normalized
