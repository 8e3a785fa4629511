"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveFloat = Annotated[float, Field(gt=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]
BcryptRounds = Annotated[int, Field(ge=4, le=31)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    jwt_secret: SecretStr = Field(validation_alias="JWT_SECRET")
    token_ttl_seconds: PositiveInt = Field(
        default=86_400,
        validation_alias="TOKEN_TTL_SECONDS",
    )
    token_leeway_seconds: NonNegativeInt = Field(
        default=0,
        validation_alias="TOKEN_LEEWAY_SECONDS",
    )
    db_pool_size: PositiveInt = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_pool_timeout_seconds: PositiveFloat = Field(
        default=30.0,
        validation_alias="DB_POOL_TIMEOUT_SECONDS",
    )
    bcrypt_rounds: BcryptRounds = Field(default=12, validation_alias="BCRYPT_ROUNDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("jwt_secret")
    @classmethod
    def _require_jwt_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("JWT_SECRET cannot be blank")
        return value


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
