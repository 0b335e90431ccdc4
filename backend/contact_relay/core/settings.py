# contact_relay/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    api_title: str = Field(default="Contact Relay API", alias="API_TITLE")
    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")

    # Mail relay endpoint
    contact_path: str = Field(default="/contact", alias="CONTACT_PATH")
    contact_recipient: str = Field(default="info@example.com", alias="CONTACT_RECIPIENT")
    contact_from: str = Field(default="no-reply@example.com", alias="CONTACT_FROM")
    contact_subject_prefix: str = Field(
        default="【サングッディーズ】お問い合わせ",
        alias="CONTACT_SUBJECT_PREFIX",
    )
    # Where contact.log lives; relative paths resolve against the working directory
    contact_log_dir: str = Field(default="storage/logs", alias="CONTACT_LOG_DIR")
    contact_timezone: str = Field(default="Asia/Tokyo", alias="CONTACT_TIMEZONE")

    # SMTP used as the system mail facility
    smtp_host: str = Field(default="localhost", alias="SMTP_HOST")
    smtp_port: int = Field(default=25, alias="SMTP_PORT")
    smtp_username: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: Optional[str] = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_ssl: bool = Field(default=False, alias="SMTP_USE_SSL")
    smtp_starttls: bool = Field(default=False, alias="SMTP_STARTTLS")
    smtp_timeout: float = Field(default=10.0, alias="SMTP_TIMEOUT")

    # Client-side delivery: EmailJS relay, else the form action endpoint
    emailjs_public_key: str = Field(default="YOUR_PUBLIC_KEY", alias="EMAILJS_PUBLIC_KEY")
    emailjs_service_id: str = Field(default="YOUR_SERVICE_ID", alias="EMAILJS_SERVICE_ID")
    emailjs_template_id: str = Field(default="YOUR_TEMPLATE_ID", alias="EMAILJS_TEMPLATE_ID")
    emailjs_api_url: str = Field(default="https://api.emailjs.com", alias="EMAILJS_API_URL")
    form_action: str = Field(default="https://formspree.io/f/{your-id}", alias="FORM_ACTION")

settings = Settings()
