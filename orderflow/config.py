"""
Orderflow Configuration Module

Loads environment variables for the checkout and reconciliation backend.
"""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Notes:
    - Processor secrets are environment-based and never committed
    - Demo mode swaps Stripe for the in-process fake processor
    - Outside demo mode STRIPE_WEBHOOK_SECRET is required; there is no default
    """

    # Stripe Configuration
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    webhook_tolerance_seconds: int = 300

    # Checkout
    currency: str = "cad"
    default_origin: str = "http://localhost:5000"

    # Demo Configuration
    demo_mode: bool = True
    seed_catalog: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Database
    database_path: str = "./orderflow.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
