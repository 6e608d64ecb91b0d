# Configuration from environment variables (.env or deployment variables).

import os
from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, str(default)))
    except ValueError:
        return default


def _env_list(key: str, default: list = None) -> list:
    s = _env(key)
    if not s:
        return default or []
    return [x.strip() for x in s.split(",") if x.strip()]


def normalize_database_url(raw_url: str) -> str:
    """Rewrite sync Postgres URLs to the asyncpg driver."""
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return raw_url


# ============================================================================
# Database
# ============================================================================
# DATABASE_URL -- full postgres:// connection string (production)
# DATABASE_URL_FALLBACK -- async sqlite for local dev
_raw_url = _env("DATABASE_URL")
DATABASE_URL = normalize_database_url(_raw_url) if _raw_url else _env(
    "DATABASE_URL_FALLBACK", "sqlite+aiosqlite:///./dealtracker.db"
)
DATABASE_ECHO = _env("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

# ============================================================================
# HTTP
# ============================================================================
CORS_ORIGINS = _env_list("CORS_ORIGINS", ["http://localhost:3000"])

# Header set by the upstream identity provider / gateway
AUTH_USER_HEADER = _env("AUTH_USER_HEADER", "X-User-Id")

# ============================================================================
# Startups
# ============================================================================
DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = _env_int("DEFAULT_PAGE_LIMIT", 50)
MAX_PAGE_LIMIT = _env_int("MAX_PAGE_LIMIT", 1000)
UPLOAD_BATCH_SIZE = _env_int("UPLOAD_BATCH_SIZE", 500)

# ============================================================================
# LLM (OpenAI-compatible endpoint)
# ============================================================================
LLM_API_KEY = _env("LLM_API_KEY", _env("OPENAI_API_KEY"))
LLM_BASE_URL = _env("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL = _env("LLM_MODEL", "gpt-4o")
LLM_TIMEOUT = _env_int("LLM_TIMEOUT", 60)

LLM_TOKEN_LIMITS = {
    "messages": _env_int("LLM_MAX_TOKENS_MESSAGES", 1200),
    "issues": _env_int("LLM_MAX_TOKENS_ISSUES", 4096),
    "temperature_messages": 0.7,
    "temperature_issues": 0.3,
}

# ============================================================================
# Logging
# ============================================================================
LOG_LEVEL = _env("LOG_LEVEL", "INFO")
