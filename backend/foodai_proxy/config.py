"""Settings loaded from environment variables."""
import os

from dotenv import load_dotenv

# Load .env if present
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def _env_list(name: str, default: str):
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# Service
SERVICE_NAME = os.getenv("SERVICE_NAME", "FoodAI Proxy Server")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
APP_ENV = os.getenv("APP_ENV", "development")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
MAX_BODY_MB = _env_int("MAX_BODY_MB", 50)

# Gemini upstream
GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com").rstrip("/")
GEMINI_MODEL_CHAIN = _env_list(
    "GEMINI_MODEL_CHAIN",
    "v1beta/gemini-1.5-flash,v1beta/gemini-1.5-pro,v1/gemini-pro-vision",
)
GEMINI_TIMEOUT_SEC = _env_float("GEMINI_TIMEOUT_SEC", 30.0)
GEMINI_ERROR_EXCERPT_CHARS = _env_int("GEMINI_ERROR_EXCERPT_CHARS", 500)
GEMINI_TERMINAL_STATUSES = frozenset(
    int(code) for code in _env_list("GEMINI_TERMINAL_STATUSES", "") if code.isdigit()
)

# CORS
_cors_origins = os.getenv("CORS_ORIGINS", "*")
if _cors_origins.strip() == "*":
    CORS_ORIGINS = ["*"]
else:
    CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]
CORS_ALLOW_CREDENTIALS = os.getenv("CORS_ALLOW_CREDENTIALS", "false").lower() == "true"
