from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RESEND_SANDBOX_SENDER = "onboarding@resend.dev"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="development", alias="APP_ENV")

    database_url: str = Field(alias="DATABASE_URL")

    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algo: str = Field(default="HS256", alias="JWT_ALGO")
    jwt_audience: str | None = Field(default=None, alias="JWT_AUDIENCE")

    cors_allow_origins: list[str] = Field(default=["*"], alias="CORS_ALLOW_ORIGINS")

    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    # Without a verified domain Resend only accepts its sandbox sender.
    resend_from: str = Field(default=RESEND_SANDBOX_SENDER, alias="RESEND_FROM")
    resend_from_name: str = Field(default="Boss Helper", alias="RESEND_FROM_NAME")
    resend_api_url: str = Field(
        default="https://api.resend.com/emails", alias="RESEND_API_URL"
    )

    twilio_sid: str | None = Field(default=None, alias="TWILIO_SID")
    twilio_auth_token: str | None = Field(default=None, alias="TWILIO_AUTH_TOKEN")
    twilio_from: str | None = Field(default=None, alias="TWILIO_FROM")
    twilio_api_base: str = Field(
        default="https://api.twilio.com/2010-04-01", alias="TWILIO_API_BASE"
    )

    provider_timeout_seconds: float = Field(
        default=10.0, alias="PROVIDER_TIMEOUT_SECONDS", gt=0
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore
