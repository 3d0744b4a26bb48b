"""CORS configuration derived from ALLOWED_ORIGINS."""

from taskforge.core.config import settings


def get_cors_config() -> dict:
    """Return CORS middleware kwargs for FastAPI."""
    return {
        "allow_origins": settings.allowed_origins_list,
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": [
            "Authorization",
            "Content-Type",
            "X-Request-Id",
            "X-Requested-With",
        ],
        "expose_headers": ["X-Request-Id"],
    }
