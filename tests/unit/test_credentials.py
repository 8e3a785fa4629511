from __future__ import annotations

import pytest

from safe_user.domain.auth.credentials import (
    normalize_display_text,
    normalize_user_email,
    normalize_user_id,
    normalize_user_password,
)


def test_email_is_trimmed_and_lowercased() -> None:
    assert normalize_user_email(email="  Ana.Silva@Example.COM ") == "ana.silva@example.com"


@pytest.mark.parametrize("email", ["a@x.com", "first+tag@mail.example.org", "o'brien@x.io"])
def test_valid_emails_are_accepted(email: str) -> None:
    assert normalize_user_email(email=email) == email


@pytest.mark.parametrize(
    "email",
    [
        "",
        "   ",
        "plainaddress",
        "@missing-local.com",
        "missing-domain@",
        "no-tld@localhost",
        "two@@x.com",
        "space in@x.com",
        ".leading@x.com",
        "trailing.@x.com",
        "double..dot@x.com",
        "a@-bad.com",
    ],
)
def test_invalid_emails_are_rejected(email: str) -> None:
    with pytest.raises(ValueError):
        normalize_user_email(email=email)


def test_user_id_is_trimmed_and_blank_rejected() -> None:
    assert normalize_user_id(user_id="  u1 ") == "u1"
    with pytest.raises(ValueError):
        normalize_user_id(user_id="   ")


def test_password_keeps_surrounding_whitespace() -> None:
    assert normalize_user_password(password=" pw ") == " pw "
    with pytest.raises(ValueError):
        normalize_user_password(password="   ")


def test_display_text_names_field_in_error() -> None:
    assert normalize_display_text(field_name="name", value=" Ana ") == "Ana"
    with pytest.raises(ValueError, match="last_name"):
        normalize_display_text(field_name="last_name", value="")
