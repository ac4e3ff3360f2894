"""
FILE: nexuschain/core/config.py
Application settings — loaded from environment variables / .env
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from nexuschain.checkpoints.deriver import DEFAULT_STATUS_POLICY, StatusDerivationPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Application
    APP_NAME: str = "NexusChain Tracking API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    RELOAD: bool = False
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database (SQLite by default; set DATABASE_URL for PostgreSQL)
    DATABASE_URL: str = "sqlite:///./nexuschain.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # JWT
    JWT_SECRET_KEY: str = "dev-secret-change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "nexuschain-api"
    JWT_AUDIENCE: str = "nexuschain-frontend"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3001"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS: List[str] = ["Authorization", "Content-Type"]

    # Checkpoint ledger
    STATUS_DERIVATION_POLICY: StatusDerivationPolicy = DEFAULT_STATUS_POLICY
    REDERIVE_ON_CHECKPOINT_DELETE: bool = True


settings = Settings()
