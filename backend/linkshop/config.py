import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, HttpUrl, ValidationError, field_validator


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    database_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DATABASE_URL", "MYSQL_DSN", "database_url")
    )
    database_ssl_ca: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DATABASE_SSL_CA", "TIDB_CA", "database_ssl_ca")
    )
    supabase_url: Optional[HttpUrl] = Field(
        default=None, validation_alias=AliasChoices("SUPABASE_URL", "supabase_url")
    )
    supabase_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SUPABASE_SERVICE_KEY", "supabase_key")
    )
    supabase_bucket: str = Field(
        default="products", validation_alias=AliasChoices("SUPABASE_BUCKET", "supabase_bucket")
    )
    media_timeout_seconds: int = Field(
        default=20, gt=0, validation_alias=AliasChoices("MEDIA_TIMEOUT_SECONDS", "media_timeout_seconds")
    )
    admin_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ADMIN_TOKEN", "admin_token")
    )
    admin_username: str = Field(
        default="admin", validation_alias=AliasChoices("ADMIN_USERNAME", "admin_username")
    )
    admin_password: str = Field(
        default="admin123", validation_alias=AliasChoices("ADMIN_PASSWORD", "admin_password")
    )
    cookie_secure: bool = Field(
        default=False, validation_alias=AliasChoices("COOKIE_SECURE", "cookie_secure")
    )
    self_ping_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SELF_PING_URL", "RENDER_PING_URL", "self_ping_url")
    )
    self_ping_interval_min: int = Field(
        default=14, gt=0, validation_alias=AliasChoices("SELF_PING_INTERVAL_MIN", "self_ping_interval_min")
    )
    self_ping_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SELF_PING_TOKEN", "self_ping_token")
    )
    dev_mode: bool = Field(default=False, validation_alias=AliasChoices("DEV_MODE", "dev_mode"))
    static_dir: Path = Field(default=Path("static"), validation_alias=AliasChoices("STATIC_DIR", "static_dir"))
    env: str = Field(default="local", validation_alias=AliasChoices("APP_ENV", "env"))
    port: int = Field(default=8000, validation_alias=AliasChoices("PORT", "port"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    @field_validator(
        "database_url",
        "database_ssl_ca",
        "supabase_url",
        "supabase_key",
        "admin_token",
        "self_ping_url",
        "self_ping_token",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def media_configured(self) -> bool:
        return self.supabase_url is not None and bool(self.supabase_key)

    def missing_services(self) -> List[str]:
        """Environment variables a non-development deployment still needs."""
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if self.supabase_url is None:
            missing.append("SUPABASE_URL")
        if not self.supabase_key:
            missing.append("SUPABASE_SERVICE_KEY")
        return missing


def _load_dotenv():
    # Load from repo root if present, otherwise rely on environment variables.
    root_env = Path(__file__).resolve().parents[2] / ".env"
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


@lru_cache()
def get_settings() -> Settings:
    _load_dotenv()
    try:
        settings = Settings(**os.environ)
    except ValidationError as exc:
        invalid = [str(e["loc"][0]) for e in exc.errors()]
        detail = f"Invalid environment variables: {', '.join(invalid)}"
        raise RuntimeError(detail) from exc
    if not settings.dev_mode:
        missing = settings.missing_services()
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)} "
                "(or set DEV_MODE=true to run without external services)"
            )
    return settings
