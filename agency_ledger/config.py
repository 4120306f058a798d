"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEDGER_",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./agency_ledger.db"

    # External Services
    storage_api_base: str = "http://localhost:8001"
    storage_bucket: str = "payment-receipts"
    notification_webhook_url: str = "http://localhost:8002/notifications"

    # Service
    service_name: str = "agency-ledger"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds

    # Identity: admins notified of new payment submissions (JSON list in env)
    admin_user_ids: List[str] = []

    # Receipts
    receipt_max_bytes: int = 10 * 1024 * 1024
    receipt_allowed_types: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
    ]

    # Reports
    dashboard_history_months: int = 12
    report_default_days: int = 30


settings = Settings()
