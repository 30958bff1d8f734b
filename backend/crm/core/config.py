"""
Configuration Management
Loads settings from environment variables and the .env file
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""
    
    environment: str = "development"
    log_level: str = "INFO"
    
    # API Settings
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]
    public_base_url: str = "http://localhost:8000"
    
    # Database
    database_url: str = "sqlite:///./crm.db"
    database_echo: bool = False
    
    # OpenPhone
    # Empty secret disables signature verification on the webhook endpoint
    openphone_webhook_secret: Optional[str] = None
    
    # Pending calls still "initiated" after this long are expired at startup
    pending_call_ttl_minutes: int = 24 * 60
    
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    
    @property
    def is_production(self) -> bool:
        return self.environment == "production"
    
    @property
    def signature_verification_enabled(self) -> bool:
        return bool(self.openphone_webhook_secret)


def get_settings() -> Settings:
    """
    Build settings from the current environment.
    
    Settings are re-read from the environment on every call.
    """
    return Settings()
