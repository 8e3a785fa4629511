from __future__ import annotations

import logging

import pytest

from safe_user.application.ports.password_hasher_port import (
    CorruptPasswordHashError,
    InvalidPasswordInputError,
)
from safe_user.application.ports.user_repository_port import UserValidationError
from safe_user.infrastructure.security.password_hasher import BcryptPasswordHasher


def test_hash_password_never_stores_plaintext_and_verifies() -> None:
    hasher = BcryptPasswordHasher(rounds=4)
    password = "super-secret-password"

    password_hash = hasher.hash_password(password)

    assert password_hash != password
    assert password not in password_hash
    assert password_hash.startswith("$2")
    assert hasher.verify_password(password=password, password_hash=password_hash) is True


def test_wrong_password_fails_verification() -> None:
    hasher = BcryptPasswordHasher(rounds=4)
    password_hash = hasher.hash_password("correct")

    assert hasher.verify_password(password="wrong", password_hash=password_hash) is False


def test_same_password_hashes_differently_per_call() -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    first = hasher.hash_password("same-secret")
    second = hasher.hash_password("same-secret")

    assert first != second
    assert hasher.verify_password(password="same-secret", password_hash=first) is True
    assert hasher.verify_password(password="same-secret", password_hash=second) is True


def test_configured_rounds_are_embedded_in_hash() -> None:
    hasher = BcryptPasswordHasher(rounds=5)

    password_hash = hasher.hash_password("pw")

    assert password_hash.split("$")[2] == "05"


def test_empty_password_is_rejected() -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    with pytest.raises(InvalidPasswordInputError):
        hasher.hash_password("")


def test_password_over_bcrypt_limit_is_rejected_as_validation_error() -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    with pytest.raises(UserValidationError):
        hasher.hash_password("x" * 73)


def test_empty_or_oversized_candidate_never_verifies() -> None:
    hasher = BcryptPasswordHasher(rounds=4)
    password_hash = hasher.hash_password("correct")

    assert hasher.verify_password(password="", password_hash=password_hash) is False
    assert hasher.verify_password(password="c" * 100, password_hash=password_hash) is False


@pytest.mark.parametrize(
    "stored",
    ["", "plaintext-password", "$2b$12$tooshort", "$argon2id$v=19$m=65536,t=3,p=4$abc$def"],
)
def test_malformed_stored_hash_raises_corrupt_hash(
    stored: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    with caplog.at_level(logging.ERROR), pytest.raises(CorruptPasswordHashError):
        hasher.verify_password(password="secret-value", password_hash=stored)

    assert any(record.levelno == logging.ERROR for record in caplog.records)
    assert "secret-value" not in caplog.text
