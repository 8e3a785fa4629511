"""SQLAlchemy metadata mapping the `users` table contract.

Column names follow the deployed schema; attribute keys are the snake_case
names used across the codebase (`users.c.user_id` maps to `UserId`).
"""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

USER_ID_CONSTRAINT = "uq_users_user_id"

users = sa.Table(
    "users",
    metadata,
    sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
    sa.Column("UserId", sa.String(50), key="user_id", nullable=False),
    sa.Column("Name", sa.String(50), key="name", nullable=False),
    sa.Column("LastName", sa.String(50), key="last_name", nullable=False),
    sa.Column("Email", sa.String(100), key="email", nullable=False),
    sa.Column("Age", sa.Integer(), key="age", nullable=False),
    sa.Column("Phone", sa.String(20), key="phone", nullable=False),
    sa.Column("Address", sa.String(100), key="address", nullable=True),
    sa.Column("BirthDate", sa.Date(), key="birth_date", nullable=False),
    sa.Column("PlaceBirth", sa.String(100), key="place_birth", nullable=True),
    sa.Column("CredentialHash", sa.String(255), key="credential_hash", nullable=False),
    sa.UniqueConstraint("user_id", name=USER_ID_CONSTRAINT),
    sa.CheckConstraint('"Age" >= 0', name="ck_users_age_non_negative"),
)
