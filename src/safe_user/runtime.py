"""Composition root wiring settings into a ready-to-use `AuthService`."""

from __future__ import annotations

import logging
from datetime import timedelta

from safe_user.application.services.auth_service import AuthService
from safe_user.config.settings import Settings, load_settings
from safe_user.infrastructure.db.session import create_session_factory
from safe_user.infrastructure.db.user_repository import SqlAlchemyUserRepository
from safe_user.infrastructure.logging import configure_logging
from safe_user.infrastructure.security.password_hasher import BcryptPasswordHasher
from safe_user.infrastructure.security.token_service import JwtTokenService, TokenSigningConfig

logger = logging.getLogger(__name__)


def build_token_signing_config(settings: Settings) -> TokenSigningConfig:
    """Build immutable token signing config from settings."""

    return TokenSigningConfig(
        secret=settings.jwt_secret.get_secret_value(),
        ttl=timedelta(seconds=settings.token_ttl_seconds),
        leeway=timedelta(seconds=settings.token_leeway_seconds),
    )


def build_auth_service(settings: Settings | None = None) -> AuthService:
    """Build authentication service with SQLAlchemy-backed dependencies.

    When `settings` is omitted they are loaded from the environment and process
    logging is configured from `LOG_LEVEL`.
    """

    if settings is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)

    session_factory = create_session_factory(
        settings.database_url,
        pool_size=settings.db_pool_size,
        pool_timeout_seconds=settings.db_pool_timeout_seconds,
    )
    service = AuthService(
        users=SqlAlchemyUserRepository(session_factory),
        password_hasher=BcryptPasswordHasher(rounds=settings.bcrypt_rounds),
        token_service=JwtTokenService(build_token_signing_config(settings)),
    )
    logger.info(
        "auth_service_ready pool_size=%s token_ttl_seconds=%s",
        settings.db_pool_size,
        settings.token_ttl_seconds,
    )
    return service
