from pydantic_settings import BaseSettings
from typing import List, Union, Optional
from pydantic import field_validator


class Settings(BaseSettings):
    # Content store
    DATABASE_URL: str
    DATABASE_ECHO: bool = False  # Log every SQL statement (noisy)

    # Application
    SECRET_KEY: str
    ADMIN_TOKEN: Optional[str] = None  # Required to ingest editions and list users
    AUTH_BRIDGE_TOKEN: Optional[str] = None  # Shared with the frontend auth layer for provider sign-in
    DEBUG: bool = False
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Split by comma or keep as single item
            return [origin.strip() for origin in v.split(",")]
        return v

    # Users
    DEFAULT_PROFILE_PICTURE: str = "/images/default-avatar.png"

    # Rate limiting
    RATE_LIMIT_DEFAULT: str = "100/minute"

    # Cookie Security
    COOKIE_SECURE: bool = True  # Set to False for local development without HTTPS
    COOKIE_SAMESITE: str = "lax"  # Options: "strict", "lax", "none"
    COOKIE_DOMAIN: Optional[str] = None  # Optional: restrict cookies to specific domain

    @property
    def is_production(self) -> bool:
        """Detect if running in production environment."""
        return self.COOKIE_SECURE and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
