from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str

    @property
    def async_database_url(self) -> str:
        """Return database URL with asyncpg driver for SQLAlchemy async."""
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url

    # OAuth2 resource server (tokens are issued by the authorization server)
    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # Supabase Storage (attachments)
    supabase_url: str = ""
    supabase_service_key: str = ""
    attachments_bucket: str = "lancamentos-anexos"
    storage_timeout: float = 30.0

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


settings = Settings()
