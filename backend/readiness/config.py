import os

DEFAULT_API_BASE_URL = "http://localhost:3001"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def api_base_url() -> str:
    return (os.getenv("ASSESSMENT_API_URL") or DEFAULT_API_BASE_URL).rstrip("/")


def api_timeout_seconds() -> float:
    raw = os.getenv("ASSESSMENT_API_TIMEOUT_SECONDS", "20")
    try:
        return max(1.0, float(raw))
    except ValueError:
        return 20.0


def openai_api_key() -> str | None:
    return os.getenv("OPENAI_API_KEY") or None


def openai_profile_model() -> str:
    return os.getenv("OPENAI_PROFILE_MODEL", "gpt-4o-mini")


def cors_origins() -> list[str]:
    raw = os.getenv("ASSESSMENT_CORS_ORIGINS", "")
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


def session_ttl_seconds() -> float:
    raw = os.getenv("ASSESSMENT_SESSION_TTL_SECONDS", "3600")
    try:
        return max(1.0, float(raw))
    except ValueError:
        return 3600.0


def max_sessions() -> int:
    raw = os.getenv("ASSESSMENT_MAX_SESSIONS", "1000")
    try:
        return max(1, int(raw))
    except ValueError:
        return 1000
