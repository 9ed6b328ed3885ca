"""
Core configuration module for the SmartTravel Deal Planner.
Settings are read from environment variables (and `.env`) with demo-friendly defaults.
"""

from pydantic_settings import BaseSettings
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Every value can be overridden with the upper-case variable name
    (e.g. DATABASE_URL, GMAIL_USER).
    """

    # Application
    app_name: str = "SmartTravel Pro"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./smarttravel.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_recycle: int = 1800  # Recycle connections after 30 min
    database_pool_pre_ping: bool = True

    # API Configuration
    api_prefix: str = "/api"
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    api_workers: int = 1

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # CORS
    cors_origins: list = ["http://localhost:5000", "http://127.0.0.1:5000", "http://localhost:5173"]
    cors_allow_credentials: bool = False
    cors_allow_methods: list = ["GET", "POST", "PATCH", "OPTIONS"]
    cors_allow_headers: list = ["Content-Type", "Accept", "X-API-Key"]

    # Admin API key for the agent toggle. Empty = open (demo mode).
    admin_api_key: str = ""

    # Email (Gmail SMTP). Without credentials the email service runs in mock mode.
    gmail_user: str = ""
    gmail_app_password: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 15.0
    email_sender_name: str = "SmartTravel Pro"
    frontend_url: str = "http://localhost:5000"

    # Upstream agent API (OmniDimension). Unset = local persona generator.
    omnidimension_api_key: str = ""
    omnidimension_endpoint: str = ""
    omnidimension_timeout: float = 20.0

    # Deal generation
    deal_candidates: int = 5
    top_deals: int = 3
    currency_symbol: str = "₹"
    origin_airport: str = "DEL"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
