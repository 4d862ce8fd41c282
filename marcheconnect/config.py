"""Configuration management using environment variables"""
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """Application settings - only what the market service needs"""

    def __init__(self):
        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development")

        # SMTP credentials for notification emails
        if self.environment == "production":
            self.smtp_host = self._get_required("SMTP_HOST")
            self.smtp_user = self._get_required("SMTP_USER")
            self.smtp_password = self._get_required("SMTP_PASSWORD")
        else:
            self.smtp_host = os.getenv("SMTP_HOST", "")
            self.smtp_user = os.getenv("SMTP_USER", "")
            self.smtp_password = os.getenv("SMTP_PASSWORD", "")
            self._warn_missing_credentials()

        self.smtp_port = int(os.getenv("SMTP_PORT", "465"))
        self.smtp_use_ssl = os.getenv("SMTP_USE_SSL", "true").lower() == "true"
        self.smtp_timeout = float(os.getenv("SMTP_TIMEOUT", "10.0"))  # seconds
        self.smtp_sender_name = os.getenv("SMTP_SENDER_NAME", "Marché de Félix")

        # Organizer inbox: copy of acceptances, new application alerts.
        # Overridden per edition by PriceConfig.notification_email.
        self.organizer_email = os.getenv("ORGANIZER_EMAIL", "")

        # Server configuration
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8000"))

        # Database configuration (SQLite by default - configurable URL)
        self.database_url = os.getenv(
            "DATABASE_URL",
            "sqlite+aiosqlite:///./marcheconnect.db"
        )

        # Public base URL, used to build the details form link sent to vendors
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:9002")

        # CORS origins (comma-separated list)
        self.cors_origins = os.getenv("CORS_ORIGINS", "")

        # Geocoding (Nominatim usage policy: max 1 request per second)
        self.geocoder_base_url = os.getenv(
            "GEOCODER_BASE_URL",
            "https://nominatim.openstreetmap.org"
        )
        self.geocoder_user_agent = os.getenv("GEOCODER_USER_AGENT", "MarcheConnect-Admin-Tool")
        self.geocoder_country = os.getenv("GEOCODER_COUNTRY", "France")
        self.geocoder_timeout = float(os.getenv("GEOCODER_TIMEOUT", "10.0"))  # seconds
        self.geocode_delay_seconds = float(os.getenv("GEOCODE_DELAY_SECONDS", "1.0"))

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def _get_required(self, key: str) -> str:
        """Get required environment variable or raise error."""
        value = os.getenv(key, "").strip()
        if not value:
            raise ValueError(
                f"Missing required environment variable: {key}. "
                f"Required in production mode."
            )
        return value

    def _warn_missing_credentials(self) -> None:
        """Warn about missing SMTP credentials in development mode."""
        required_credentials = {
            "SMTP_HOST": "SMTP server used for vendor notifications (e.g. smtp.gmail.com).",
            "SMTP_USER": "Mailbox the notifications are sent from.",
            "SMTP_PASSWORD": "Password or app password for SMTP_USER.",
        }

        missing = [
            f"{key} - {desc}"
            for key, desc in required_credentials.items()
            if not getattr(self, key.lower(), "").strip()
        ]

        if missing:
            logger.warning(
                "⚠️  Missing configuration - notification emails will fail until these are set:\n" +
                "\n".join(f"  - {config}" for config in missing) +
                "\n\nCopy .env.example to .env and fill in your credentials."
            )


# Global settings instance
settings = Settings()
