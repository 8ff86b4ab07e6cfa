"""Centralized configuration loaded from environment variables."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _optional(key: str, default: str) -> str:
    return os.environ.get(key, default)


# Content origin; relative resource keys resolve against it
CONTENT_BASE_URL: str = _optional("CONTENT_BASE_URL", "http://localhost:8000/")
HTTP_TIMEOUT_S: float = float(_optional("HTTP_TIMEOUT_S", "10"))

# Cache
CACHE_NAMESPACE: str = _optional("CACHE_NAMESPACE", "portfolio")
CACHE_VERSION: str = _optional("CACHE_VERSION", "v1")
CACHE_TTL_MS: int = int(_optional("CACHE_TTL_MS", str(5 * 60 * 1000)))
CACHE_DIR: Path = Path(_optional("CACHE_DIR", str(Path(__file__).parent / ".cache")))

LOG_LEVEL: str = _optional("LOG_LEVEL", "INFO").upper()
