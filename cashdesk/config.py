# cashdesk/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# El .env es opcional; las variables del entorno tienen prioridad
project_root = Path(__file__).resolve().parent.parent
load_dotenv(project_root / ".env")


class Settings:
    DATABASE_URL = os.getenv("CASHDESK_DATABASE_URL", "sqlite:///./cashdesk.db")

    # JWT
    SECRET_KEY = os.getenv("CASHDESK_SECRET_KEY", "cashdesk_secret_key_change_me_in_prod")
    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("CASHDESK_ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 12))

    # Reportes
    REPORT_DEFAULT_DAYS = int(os.getenv("CASHDESK_REPORT_DEFAULT_DAYS", 30))
    READ_RETRIES = int(os.getenv("CASHDESK_READ_RETRIES", 3))

    LOG_LEVEL = os.getenv("CASHDESK_LOG_LEVEL", "INFO")


settings = Settings()
