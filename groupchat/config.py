# groupchat/config.py
import os

from dotenv import load_dotenv

# Load .env once here
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./groupchat.db")
DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))
SQL_ECHO = _flag("SQL_ECHO", "false")  # set True to log SQL in dev

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-9f3c1e7a5b2d4086a1c3e5f7b9d0a2c4")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]
SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
