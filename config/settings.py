import os
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables with defaults.

    Every value can be overridden through the environment (or a local .env
    file), while the defaults are good enough for local development.
    """

    # Project metadata
    PROJECT_NAME = "Style Finder"
    PROJECT_VERSION = "0.1.0"
    APP_NAME = os.getenv("APP_NAME", "Style Finder")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Database Settings
    DB_URL_OVERRIDE = os.getenv("DATABASE_URL")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "3306")
    DB_NAME = os.getenv("DB_NAME", "stylefinder")
    DB_USER = os.getenv("DB_USER", "user")
    DB_PASS = os.getenv("DB_PASSWORD", "password")

    # Auth
    AUTH_TOKEN_EXPIRE_DAYS = int(os.getenv("AUTH_TOKEN_EXPIRE_DAYS", "30"))
    RESET_CODE_EXPIRE_MINUTES = int(os.getenv("RESET_CODE_EXPIRE_MINUTES", "15"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.sendgrid.net")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_SECURE = _env_flag("SMTP_SECURE", "false")
    SMTP_USER = os.getenv("SMTP_USER", "apikey")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    EMAIL_DEFAULT_FROM = os.getenv("EMAIL_DEFAULT_FROM", "noreply@example.com")

    # Social sign-in
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_TOKENINFO_URL = os.getenv("GOOGLE_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo")
    APPLE_CLIENT_ID = os.getenv("APPLE_CLIENT_ID", "")
    APPLE_KEYS_URL = os.getenv("APPLE_KEYS_URL", "https://appleid.apple.com/auth/keys")
    APPLE_ISSUER = "https://appleid.apple.com"

    # Push notifications
    EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")

    # Scraper
    SCRAPER_HEADLESS = _env_flag("SCRAPER_HEADLESS", "true")

    @property
    def DATABASE_URL(self) -> str:
        """SQLAlchemy connection string; DATABASE_URL wins over the MySQL parts."""
        if self.DB_URL_OVERRIDE:
            return self.DB_URL_OVERRIDE
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def CORS_ORIGINS(self) -> list:
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


# For direct access in other modules
settings = get_settings()
