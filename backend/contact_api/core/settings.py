# contact_api/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        frozen=True,
    )

    api_title: str = Field(default="Portfolio Contact API", alias="API_TITLE")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV", "environment"),
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Comma separated; browsers calling with credentials must match exactly
    cors_origins: str = Field(
        default="http://localhost:3000,https://my-portfolio-853e1.web.app",
        alias="CORS_ORIGINS",
    )

    # Gmail account used to relay both messages (app password, not the login password)
    gmail_user: Optional[str] = Field(default=None, alias="GMAIL_USER")
    gmail_app_password: Optional[str] = Field(default=None, alias="GMAIL_APP_PASSWORD")
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=465, alias="SMTP_PORT")
    smtp_timeout: float = Field(default=30.0, alias="SMTP_TIMEOUT")

    # Where notifications go; unset means the sending account itself
    recipient_email: Optional[str] = Field(default=None, alias="RECIPIENT_EMAIL")

    send_auto_reply: bool = Field(default=False, alias="SEND_AUTO_REPLY")
    auto_reply_name: str = Field(default="Mordecai", alias="AUTO_REPLY_NAME")
    auto_reply_title: str = Field(default="Full-Stack Developer", alias="AUTO_REPLY_TITLE")

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def sender_address(self) -> str:
        return (self.gmail_user or "").strip()

    @property
    def notification_recipient(self) -> str:
        return (self.recipient_email or "").strip() or self.sender_address

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def expose_error_detail(self) -> bool:
        return not self.is_production

settings = Settings()
