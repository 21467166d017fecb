"""Configuration settings for the integrations service."""

from typing import Optional, Dict, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Service Configuration
    service_name: str = "ux-integrations-service"
    port: int = 8000
    environment: str = "development"
    debug: bool = False

    # Storage
    storage_backend: str = "mongodb"  # mongodb | memory
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "ux_integrations"
    redis_url: str = "redis://localhost:6379"

    # Auth Service
    auth_service_url: str = "http://localhost:8001"

    # Security
    encryption_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    scheduler_api_key: Optional[str] = None

    # Provider calls
    provider_timeout_seconds: float = 30.0
    provider_max_retries: int = 3

    # Sync
    sync_window_days: int = 30
    sync_batch_concurrency: int = 4
    sync_timeout_multiplier: int = 4

    # Rate Limiting
    rate_limit_enabled: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Provider specific configurations
PROVIDER_CONFIGS: Dict[str, Dict[str, Any]] = {
    "GOOGLE_ANALYTICS": {
        "name": "Google Analytics",
        "api_base_url": "https://analyticsdata.googleapis.com/v1beta",
        "scopes": ["https://www.googleapis.com/auth/analytics.readonly"],
        "rate_limit": {
            "calls": 600,
            "window": 3600,
        }
    },
    "HOTJAR": {
        "name": "Hotjar",
        "api_base_url": "https://insights.hotjar.com/api/v1",
        "rate_limit": {
            "calls": 100,
            "window": 60,
        }
    },
    "POWERBI": {
        "name": "PowerBI",
        "api_base_url": "https://api.powerbi.com/v1.0/myorg",
        "token_url": "https://login.microsoftonline.com/{tenant_id}/oauth2/token",
        "resource": "https://analysis.windows.net/powerbi/api",
        "rate_limit": {
            "calls": 200,
            "window": 3600,
        }
    },
    "MIXPANEL": {
        "name": "Mixpanel",
        "api_base_url": "https://mixpanel.com/api/2.0",
        "rate_limit": {
            "calls": 60,
            "window": 3600,
        }
    },
    "AMPLITUDE": {
        "name": "Amplitude",
        "api_base_url": "https://amplitude.com/api/2",
        "rate_limit": {
            "calls": 360,
            "window": 3600,
        }
    },
    "CUSTOM": {
        "name": "Custom REST endpoint",
        "rate_limit": {
            "calls": 100,
            "window": 60,
        }
    },
    "FIGMA": {
        "name": "Figma",
        "api_base_url": "https://api.figma.com/v1",
        "rate_limit": {
            "calls": 120,
            "window": 60,
        }
    },
}
