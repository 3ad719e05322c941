"""Environment-driven settings for the Interview Pro API."""

import os

from dotenv import load_dotenv

load_dotenv()

# Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-preview-05-20")
GEMINI_API_BASE_URL = os.getenv("GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))
GEMINI_MAX_RETRIES = int(os.getenv("GEMINI_MAX_RETRIES", "5"))

# Uploads
UPLOAD_LIMIT_BYTES = int(os.getenv("UPLOAD_LIMIT_BYTES", str(5 * 1024 * 1024)))  # 5 MB per request

# Sessions
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", str(24 * 60 * 60)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def as_mapping() -> dict:
    """Return the settings in the shape expected by ``app.config``."""
    return {
        "GEMINI_API_KEY": GEMINI_API_KEY,
        "GEMINI_MODEL": GEMINI_MODEL,
        "GEMINI_API_BASE_URL": GEMINI_API_BASE_URL,
        "GEMINI_TIMEOUT_SECONDS": GEMINI_TIMEOUT_SECONDS,
        "GEMINI_MAX_RETRIES": GEMINI_MAX_RETRIES,
        "MAX_CONTENT_LENGTH": UPLOAD_LIMIT_BYTES,
        "SESSION_TTL_SECONDS": SESSION_TTL_SECONDS,
        "LOG_LEVEL": LOG_LEVEL,
    }
