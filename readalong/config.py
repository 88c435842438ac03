# config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


JWT_SECRET = os.getenv("JWT_SECRET") or os.getenv("SECRET", "yoursecretkey")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:3001,http://localhost:3002,http://localhost:3003",
    ).split(",")
    if origin.strip()
]
CLIENT_URL = os.getenv("CLIENT_URL")
if CLIENT_URL:
    CORS_ORIGINS.append(CLIENT_URL)

# Sockets without a token are let through unless this is set
REQUIRE_SOCKET_AUTH = _flag("REQUIRE_SOCKET_AUTH")

JANITOR_INTERVAL_SECONDS = int(os.getenv("JANITOR_INTERVAL_SECONDS", 300))
PRESENCE_TIMEOUT_SECONDS = int(os.getenv("PRESENCE_TIMEOUT_SECONDS", 600))
ACTIVE_WINDOW_SECONDS = int(os.getenv("ACTIVE_WINDOW_SECONDS", 300))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.environ.get("PORT", 5000))
