from __future__ import annotations

from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent.parent / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "EcoReport"
    LOG_LEVEL: str = "INFO"

    # --- Session ---
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_DAYS: int = 14
    COOKIE_NAME: str = "ecoreport_token"

    # --- Database ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./ecoreport.db"

    # --- Points ---
    REPORT_POINTS: int = 10
    COLLECT_POINTS: int = 20
    POINTS_PER_LEVEL: int = 100
    TRANSACTION_WINDOW: int = 10

    # --- Gemini (waste classification) ---
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # --- Google Maps (places autocomplete) ---
    GOOGLE_MAPS_API_KEY: str = ""

    # --- Mail ---
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    ALERT_EMAIL: str = ""

    HTTP_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
