from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NON_PRODUCTION_ENVS = {"development", "local", "test"}
MIN_DOWNLOAD_SECRET_LENGTH = 32


def _split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        populate_by_name=True,
    )

    env: str = "production"
    log_level: str = "INFO"

    # DATABASE_URL wins, then the postgres parts, then a local sqlite file
    database_url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    postgres_user: Optional[str] = None
    postgres_password: Optional[str] = None
    postgres_db: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # Signed download links
    download_secret: str = ""
    download_link_ttl_hours: int = 24

    # Paystack
    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"
    payment_dev_bypass: bool = False
    webhook_notifications_enabled: bool = False

    # Pricing in major currency units (GHS), Paystack amounts are in pesewas
    ebook_price: int = 89
    hardcopy_price: int = 99
    currency: str = "GHS"

    # Cloudflare R2
    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_endpoint_url: Optional[str] = None

    private_files_dir: str = "private"
    public_dir: str = "public"

    # Brevo
    brevo_api_key: str = ""
    brevo_list_ids: Optional[str] = None
    brevo_list_id: Optional[str] = None
    mail_from: str = "books@example.com"
    mail_sender_name: str = "The Path to Purpose"
    admin_emails: Optional[str] = None

    analytics_secret: str = ""

    site_url: str = "http://localhost:8000"
    cors_origins: Optional[str] = None

    http_timeout_seconds: float = 10
    storage_timeout_seconds: float = 10

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        if self.postgres_user and self.postgres_password and self.postgres_db:
            encoded_password = quote_plus(self.postgres_password)
            return (
                f"postgresql+psycopg2://{self.postgres_user}:"
                f"{encoded_password}@{self.postgres_host}:"
                f"{self.postgres_port}/{self.postgres_db}"
            )
        return "sqlite:///./author_site.db"

    @property
    def is_production(self) -> bool:
        return self.env.lower() not in NON_PRODUCTION_ENVS

    @property
    def payment_dev_bypass_allowed(self) -> bool:
        """Auto-approve checkout only in a non-production env with no gateway key."""
        return (
            self.payment_dev_bypass
            and not self.is_production
            and not self.paystack_secret_key
        )

    @property
    def r2_configured(self) -> bool:
        return bool(
            self.r2_bucket_name
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and (self.r2_account_id or self.r2_endpoint_url)
        )

    @property
    def admin_email_list(self) -> List[str]:
        return _split_csv(self.admin_emails)

    @property
    def cors_origin_list(self) -> List[str]:
        return _split_csv(self.cors_origins) or [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]

    @property
    def newsletter_list_ids(self) -> List[int]:
        ids = []
        for item in _split_csv(self.brevo_list_ids or self.brevo_list_id):
            if item.isdigit():
                ids.append(int(item))
        return ids

    def validate_secrets(self) -> None:
        """Fail fast at startup instead of degrading security per request."""
        errors: List[str] = []

        if not self.download_secret:
            errors.append("  DOWNLOAD_SECRET is not set")
        elif len(self.download_secret) < MIN_DOWNLOAD_SECRET_LENGTH:
            errors.append(
                f"  DOWNLOAD_SECRET is too short ({len(self.download_secret)} chars, "
                f"minimum {MIN_DOWNLOAD_SECRET_LENGTH})"
            )

        if self.is_production and not self.paystack_secret_key:
            errors.append("  PAYSTACK_SECRET_KEY is not set")

        if self.is_production and self.payment_dev_bypass:
            errors.append("  PAYMENT_DEV_BYPASS cannot be enabled in production")

        if errors:
            raise RuntimeError(
                "Startup aborted, insecure configuration:\n" + "\n".join(errors)
            )


settings = Settings()
