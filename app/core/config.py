from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="docker", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="expenses_ussd", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/expenses_db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    DATABASE_SSL: bool = Field(default=False, validation_alias=AliasChoices("DATABASE_SSL", "database_ssl"))
    REDIS_URL: str = Field(
        default="redis://redis:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )

    # USSD sessions
    USSD_SESSION_TTL_SECONDS: int = Field(
        default=8 * 60,
        validation_alias=AliasChoices("USSD_SESSION_TTL_SECONDS", "ussd_session_ttl_seconds"),
    )
    USSD_SESSION_KEY_PREFIX: str = Field(
        default="ussd:state:",
        validation_alias=AliasChoices("USSD_SESSION_KEY_PREFIX", "ussd_session_key_prefix"),
    )
    USSD_APP_TITLE: str = Field(default="Expenses App", validation_alias=AliasChoices("USSD_APP_TITLE", "ussd_app_title"))


settings = Settings()
