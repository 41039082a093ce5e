"""
PlanGuard - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "PlanGuard"
    app_env: str = "development"
    debug: bool = False
    base_url: str = "http://localhost:5173"  # Used for links in alert e-mails
    
    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url_async: str  # Required - must be set in .env
    database_pool_size: int = 5
    database_max_overflow: int = 10
    
    # ===========================================
    # JOB ENTRY POINTS
    # Shared secret the scheduler sends in the X-Job-Token header.
    # Empty means unauthenticated, which is refused in production.
    # ===========================================
    job_token: str = ""
    
    # ===========================================
    # REDIS / CELERY CONFIGURATION
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"
    celery_timezone: str = "UTC"
    payment_sweep_hour_utc: int = 3
    call_trial_sweep_minute: int = 15
    
    # ===========================================
    # BILLING RULES
    # ===========================================
    monthly_grace_period_days: int = 30
    annual_grace_period_days: int = 365
    alert_milestone_days: str = "7,3,1,0"  # Days remaining before block
    
    @property
    def alert_milestones(self) -> List[int]:
        """Parse milestone string into a list of day counts."""
        return [int(day.strip()) for day in self.alert_milestone_days.split(",") if day.strip()]
    
    # ===========================================
    # EMAIL CONFIGURATION
    # ===========================================
    billing_alert_emails_enabled: bool = False
    mail_server: str = ""
    mail_port: int = 587
    mail_use_tls: bool = True
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = ""
    mail_from_name: str = "PlanGuard Billing"
    sendgrid_api_key: str = ""
    
    @property
    def smtp_host(self) -> str:
        """SMTP host server."""
        return self.mail_server
    
    @property
    def email_from(self) -> str:
        """Email from address."""
        return self.mail_from or self.mail_username
    
    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    
    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]
    
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"
    
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
