"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./event_log.db")

    # Scanning
    DEBOUNCE_SECONDS: int = int(os.getenv("DEBOUNCE_SECONDS", "30"))
    STOP_KEYWORD: str = os.getenv("STOP_KEYWORD", "stop")

    # Export
    EXPORT_DIR: str = os.getenv("EXPORT_DIR", "./exports")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Development server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:8000",
    ]

    class Config:
        env_file = ".env"

settings = Settings()
