"""
Configuration module for the OilFlow Assistant backend.
Manages environment variables and application settings.
"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from oilflow_assistant.models.chat import MAX_MESSAGE_LENGTH


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API Configuration
    app_name: str = "OilFlow BIDEC ERP Assistant"
    app_version: str = "2.0.0"
    debug: bool = False

    # Conversation Pipeline
    default_language: str = "en"
    low_confidence_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    max_message_length: int = MAX_MESSAGE_LENGTH

    # Analytics
    analytics_retention_days: int = 90
    report_window_days: int = 30

    # Admin endpoints (analytics, escalations)
    admin_api_key: str = ""

    # MongoDB Configuration (optional transcript archive)
    mongo_url: Optional[str] = None
    mongo_db_name: str = "oilflow_assistant"
    mongo_conversations_collection: str = "conversations"
    mongo_metrics_collection: str = "conversation_metrics"

    # Escalation alert webhook
    escalation_webhook_url: Optional[str] = None
    escalation_webhook_token: Optional[str] = None
    alert_timeout_seconds: float = 10.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
