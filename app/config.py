from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application configuration settings."""
    
    # App settings
    app_name: str = "E-Challan Tracker"
    debug: bool = True
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = ["*"]
    
    # Database settings
    database_url: str = "sqlite+aiosqlite:///./echallan.db"
    
    # Challan settings
    challan_id_prefix: str = "CHLN"
    default_due_days: int = 30  # Due date offset when none is supplied
    
    # Recent search cache
    search_cache_ttl_min: int = 30
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
