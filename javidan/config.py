from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Deployment mode: development, test or production
    environment: str = "development"
    admin_secret: str = "change-me-in-production"

    # Database settings
    database_path: str = "./javidan.db"

    # Cloudflare R2 (S3-compatible) storage settings
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = "javidan-media"
    r2_public_url: str = ""
    r2_endpoint_url: str = ""
    presign_expiry_seconds: int = 3600

    # Application limits
    field_update_daily_limit: int = 10
    search_limit: int = 100
    social_request_timeout: int = 10

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def r2_configured(self) -> bool:
        """True when all R2 credentials are present"""
        return bool(self.r2_account_id and self.r2_access_key_id and self.r2_secret_access_key)

    @property
    def r2_endpoint(self) -> str:
        """Get the R2 endpoint URL"""
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"


settings = Settings()
