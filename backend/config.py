# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./pharmacy_pos.db"
    FRONTEND_URL: Optional[str] = None

    # Storage locations (relative to the working directory)
    UPLOAD_DIR: str = "static/uploads"
    INVOICE_DIR: str = "storage/invoices"
    FONT_DIR: str = "assets/fonts"

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Static company details printed on invoices
    COMPANY_NAME: str = "Apotek Sehat"
    COMPANY_ADDRESS: str = "Jl. Contoh No. 123, Kota Anda"
    COMPANY_PHONE: str = "(021) 12345678"

    # Sale workflow
    INVOICE_MAX_ATTEMPTS: int = 5
    INVOICE_RETRY_DELAY_MS: int = 50

    # Activity log de-duplication window for repeated GETs
    ACTIVITY_DEDUP_SECONDS: int = 30

    EXPIRY_WARNING_DAYS: int = 30
    SEARCH_LIMIT: int = 10

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

settings = Settings()
