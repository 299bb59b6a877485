"""Configuration management for Fooddash using Pydantic."""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google Places Configuration
    google_api_key: str = Field(..., description="Google Places API key")
    places_base_url: str = Field(
        default="https://places.googleapis.com/v1",
        description="Base URL of the Places (New) REST API",
    )
    places_language_code: str = Field(
        default="ja", description="Language code sent with every place search"
    )
    places_region_code: str = Field(
        default="JP", description="Region code used for autocomplete"
    )
    places_cache_ttl_seconds: int = Field(
        default=86400, description="How long place responses are reused"
    )

    # Persistence Configuration
    database_url: str = Field(
        default="sqlite:///fooddash.db", description="SQLAlchemy database URL"
    )
    storage_public_url: str | None = Field(
        None,
        description="Public object storage base URL "
        "(e.g. https://<project>.supabase.co/storage/v1/object/public)",
    )
    menu_bucket: str = Field(default="menus", description="Bucket holding menu images")

    # Auth Configuration
    auth_url: str | None = Field(
        None, description="Auth provider REST endpoint (e.g. .../auth/v1)"
    )
    auth_api_key: str | None = Field(None, description="Auth provider public API key")
    auth_redirect_url: str = Field(
        default="http://localhost:8080/auth/callback",
        description="Where the OAuth provider sends users back to",
    )
    session_secret: str = Field(
        default="fooddash-secret-change-in-production",
        description="Secret used to sign the session cookie",
    )

    # Search Center Configuration
    default_latitude: float = Field(
        default=35.6669248, description="Fallback search center latitude (Shibuya)"
    )
    default_longitude: float = Field(
        default=139.6990609, description="Fallback search center longitude (Shibuya)"
    )
    autocomplete_latitude: float = Field(
        default=35.6669248, description="Autocomplete bias center latitude"
    )
    autocomplete_longitude: float = Field(
        default=139.6514163, description="Autocomplete bias center longitude"
    )
    placeholder_photo_url: str = Field(
        default="/images/no image.png",
        description="Image shown for places without photos",
    )

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    environment: str = Field(
        default="development", description="Deployment environment name"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    def has_auth_config(self) -> bool:
        """Check if the auth provider is properly configured."""
        return bool(self.auth_url and self.auth_api_key)

    def has_storage_config(self) -> bool:
        """Check if object storage is configured."""
        return bool(self.storage_public_url)

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if not self.has_auth_config():
            logger.warning("AUTH_URL / AUTH_API_KEY not set - login disabled")

        if not self.has_storage_config():
            logger.warning(
                "STORAGE_PUBLIC_URL not set - menu images will use relative paths"
            )


# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the application."""
    if cfg is None:
        cfg = get_config()

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
