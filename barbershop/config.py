# barbershop/config.py

import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")
SQL_ECHO = _flag("SQL_ECHO", "false")

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-later")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# Default admin account created at startup when no admin exists
SEED_ADMIN = _flag("SEED_ADMIN", "true")
default_admin = {
    "name": os.getenv("ADMIN_NAME", "Shop Admin"),
    "email": os.getenv("ADMIN_EMAIL", "admin@barbershop.local"),
    "password": os.getenv("ADMIN_PASSWORD", "admin123456"),
    "phone": os.getenv("ADMIN_PHONE", "11999999999"),
}

shop_settings = {
    "slot_minutes": 30,
    "cancel_notice_hours": 2,
    # share of the business window that unavailabilities must cover
    # before a day is reported as completely blocked
    "blocked_day_ratio": 0.9,
}
