"""Runtime configuration for the rankings service and its client.

Every option maps to an upper-case environment variable; a local `.env`
file is read as well.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings. Only SECRET_KEY has no default."""

    # Application metadata
    app_name: str = Field(default="Bellyfed Rankings", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Bearer tokens
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Store
    database_url: str = Field(default="sqlite:///./bellyfed.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Ranking limits
    rankings_default_page_size: int = Field(default=20, alias="RANKINGS_DEFAULT_PAGE_SIZE")
    rankings_max_page_size: int = Field(default=100, alias="RANKINGS_MAX_PAGE_SIZE")
    ranking_notes_max_length: int = Field(default=1000, alias="RANKING_NOTES_MAX_LENGTH")
    ranking_max_photos: int = Field(default=5, alias="RANKING_MAX_PHOTOS")
    country_distribution_size: int = Field(default=10, alias="COUNTRY_DISTRIBUTION_SIZE")
    top_restaurants_limit: int = Field(default=5, alias="TOP_RESTAURANTS_LIMIT")

    # Client-side per-dish ranking cache
    ranking_cache_ttl_seconds: int = Field(default=300, alias="RANKING_CACHE_TTL_SECONDS")
    ranking_cache_backend: str = Field(default="memory", alias="RANKING_CACHE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Photo uploads
    photo_storage_url: str | None = Field(default=None, alias="PHOTO_STORAGE_URL")
    photo_public_base_url: str = Field(
        default="https://photos.bellyfed.com",
        alias="PHOTO_PUBLIC_BASE_URL",
    )
    photo_upload_url_ttl_seconds: int = Field(
        default=300,
        alias="PHOTO_UPLOAD_URL_TTL_SECONDS",
    )
    photo_storage_timeout_seconds: float = Field(
        default=10.0,
        alias="PHOTO_STORAGE_TIMEOUT_SECONDS",
    )
    photo_allowed_content_types: list[str] = Field(
        default=["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"],
        alias="PHOTO_ALLOWED_CONTENT_TYPES",
    )

    # Engagement analytics
    analytics_enabled: bool = Field(default=False, alias="ANALYTICS_ENABLED")
    analytics_url: str | None = Field(default=None, alias="ANALYTICS_URL")
    analytics_timeout_seconds: float = Field(default=2.0, alias="ANALYTICS_TIMEOUT_SECONDS")

    # Browser clients
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def sqlalchemy_url(self) -> str:
        """Return DATABASE_URL with bare PostgreSQL URLs pinned to psycopg 3."""
        for prefix in ("postgres://", "postgresql://"):
            if self.database_url.startswith(prefix):
                return "postgresql+psycopg://" + self.database_url[len(prefix):]
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
