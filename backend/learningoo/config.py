from typing import Literal

from pydantic import AliasChoices, AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env", "../.env"), extra="ignore")

    store_backend: Literal["postgres", "memory"] = "postgres"
    database_url: AnyUrl | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    jwt_secret: str = "devsecret"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7

    admin_email: str = Field(
        default="email@test.com",
        validation_alias=AliasChoices("ADMIN_EMAIL", "L_ADMIN_EMAIL"),
    )
    admin_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ADMIN_PASSWORD", "L_PASSWORD"),
    )
    admin_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ADMIN_KEY", "L_ADMIN_KVLR"),
    )

    # Seed values for the Config singleton; the stored row wins once it exists.
    default_credits: int = Field(default=100, ge=0)
    allow_registration: bool = True
    allow_login: bool = True

    cors_allow_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    cors_allow_origin_regex: str | None = r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    log_level: str = "INFO"
    sentry_dsn: str | None = Field(
        default=None, validation_alias=AliasChoices("SENTRY_DSN", "BACKEND_SENTRY_DSN")
    )
    sentry_traces_sample_rate: float = Field(
        default=0.0,
        validation_alias=AliasChoices(
            "SENTRY_TRACES_SAMPLE_RATE",
            "BACKEND_SENTRY_TRACES_SAMPLE_RATE",
        ),
    )

    @model_validator(mode="after")
    def _require_database_url(self):
        if self.store_backend == "postgres" and self.database_url is None:
            raise ValueError("DATABASE_URL is required when STORE_BACKEND=postgres")
        return self

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


settings = Settings()
