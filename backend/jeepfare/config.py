"""Configuration for the jeepney fare engine."""

from typing import List
import os
from dotenv import load_dotenv

load_dotenv()


def _to_bool(value: str, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings."""

    def __init__(self):
        # API Settings
        self.API_TITLE = os.getenv("API_TITLE", "Jeepney Fare Engine")
        self.API_VERSION = os.getenv("API_VERSION", "1.0.0")
        self.API_DESCRIPTION = (
            "Route-sequence filtering and fare computation for jeepney routes"
        )

        # Reference data datastore
        self.DATABASE_URL = os.getenv(
            "DATABASE_URL", "sqlite:///./jeepney_reference.db"
        )

        # Remote fare matrix service
        self.FARE_API_BASE_URL = os.getenv(
            "FARE_API_BASE_URL", "http://localhost/LakbAI-API/routes/api.php"
        ).rstrip("/")
        self.FARE_API_TIMEOUT = float(os.getenv("FARE_API_TIMEOUT", "5"))
        self.FARE_API_ENABLED = _to_bool(os.getenv("FARE_API_ENABLED"), True)

        # Presentation
        self.CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₱")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Server
        self.HOST = os.getenv("HOST", "127.0.0.1")
        self.PORT = int(os.getenv("PORT", "8000"))

        # CORS Settings
        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8081",
            ).split(",")
            if origin.strip()
        ]


settings = Settings()
