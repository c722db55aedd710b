from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "content" / "services.md"


def _normalize_bool(value) -> bool:
    """Only "false", "0" and the empty string switch a flag off."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    return text not in ("false", "0", "")


class Settings(BaseSettings):
    # Record store (Supabase REST)
    supabase_url: str = ""
    supabase_service_role: str = ""
    supabase_leads_table: str = "leads"
    supabase_timeout: float = 10.0

    # Email delivery
    email_to: str = ""
    email_from: str = ""
    email_autoreply: bool = True
    mail_transport: Literal["resend", "smtp"] = "resend"

    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    resend_timeout: float = 10.0

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_secure: Optional[bool] = None
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_timeout: float = 10.0

    # Assistant
    openai_api_key: str = ""
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.4
    openai_timeout: float = 30.0
    services_catalog_path: Path = Field(DEFAULT_CATALOG_PATH)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "supabase_url",
        "supabase_service_role",
        "email_to",
        "email_from",
        "resend_api_key",
        "smtp_host",
        "smtp_user",
        "smtp_pass",
        "openai_api_key",
        mode="before",
    )
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("mail_transport", mode="before")
    @classmethod
    def _lower_transport(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("email_autoreply", mode="before")
    @classmethod
    def _parse_autoreply(cls, value):
        return _normalize_bool(value)

    @field_validator("smtp_secure", mode="before")
    @classmethod
    def _parse_secure(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _normalize_bool(value)

    @property
    def smtp_use_ssl(self) -> bool:
        if self.smtp_secure is None:
            return self.smtp_port == 465
        return self.smtp_secure

    @property
    def sender_address(self) -> str:
        if self.email_from:
            return self.email_from
        if self.mail_transport == "smtp":
            return self.smtp_user
        return ""

    def missing_lead_settings(self) -> List[str]:
        """Names of the env vars the lead handler needs but are empty."""
        required = [
            ("SUPABASE_URL", self.supabase_url),
            ("SUPABASE_SERVICE_ROLE", self.supabase_service_role),
            ("EMAIL_TO", self.email_to),
            ("EMAIL_FROM", self.sender_address),
        ]
        if self.mail_transport == "smtp":
            required.append(("SMTP_USER", self.smtp_user))
            required.append(("SMTP_PASS", self.smtp_pass))
        else:
            required.append(("RESEND_API_KEY", self.resend_api_key))
        return [name for name, value in required if not value]


def get_settings() -> Settings:
    """Read settings from the environment on each request."""
    return Settings()
