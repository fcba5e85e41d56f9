"""
Runtime configuration for the Portfolio API.

Values are read from environment variables (or a local `.env` file).
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: Optional[str] = Field(None, description="MongoDB connection string.")
    database_name: Optional[str] = Field(None, description="MongoDB database name.")

    # Auth
    jwt_secret: str = "super-secret-key-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12
    admin_email: str = "admin@portfolio.dev"
    admin_password: str = "admin123"
    admin_password_hash: Optional[str] = None
    admin_auth_enabled: bool = Field(
        True, description="Require an admin bearer token on mutating routes. Set false for open admin routes."
    )

    cors_origins: List[str] = ["*"]

    # Uploads
    storage_backend: str = Field("local", description="Either 'local' or 's3'.")
    upload_dir: Path = Path("./data/uploads")
    public_base_url: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None

    # Email
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    email_dev_mode: bool = Field(False, description="Log contact mail instead of failing when SMTP_HOST is unset.")
    from_email: str = ""
    contact_to_email: Optional[str] = Field(None, description="Destination for contact messages, defaults to from_email.")

    # Listing
    default_page_size: int = Field(5, ge=1)
    max_page_size: int = Field(50, ge=1)

    log_level: str = "INFO"

    @field_validator("storage_backend")
    @classmethod
    def normalize_backend(cls, value: str) -> str:
        value = (value or "local").lower()
        if value not in ("local", "s3"):
            raise ValueError("storage_backend must be 'local' or 's3'")
        return value

    @property
    def contact_destination(self) -> str:
        return self.contact_to_email or self.from_email


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance to avoid reparsing the environment."""
    return Settings()
