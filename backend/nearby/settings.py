"""Environment-driven configuration for Nearby.

Values are read once at import time from the process environment, after
loading an optional ``.env`` file.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_AGENT = "Nearby/1.0 (https://github.com/ehamiter/nearby; nearby@example.com)"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: Optional[float]) -> Optional[float]:
    if val is None or val.strip() == "":
        return default
    return float(val)


def _as_int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    return int(val)


def _as_list(val: str | None) -> list[str]:
    if val is None:
        return []
    return [item.strip() for item in val.split(",") if item.strip()]


class Settings:
    def __init__(self) -> None:
        self.USER_AGENT: str = os.getenv("NEARBY_USER_AGENT", DEFAULT_USER_AGENT)
        self.HTTP_TIMEOUT: float = _as_float(os.getenv("NEARBY_HTTP_TIMEOUT"), 8.0)  # type: ignore[assignment]
        self.MAX_RETRIES: int = _as_int(os.getenv("NEARBY_MAX_RETRIES"), 1)
        self.MAX_CONCURRENT_REQUESTS: int = _as_int(os.getenv("NEARBY_MAX_CONCURRENT_REQUESTS"), 3)
        # 50 MB in memory, 100 MB on disk
        self.CACHE_MEMORY_BYTES: int = _as_int(os.getenv("NEARBY_CACHE_MEMORY_BYTES"), 50 * 1024 * 1024)
        self.CACHE_DISK_BYTES: int = _as_int(os.getenv("NEARBY_CACHE_DISK_BYTES"), 100 * 1024 * 1024)
        self.CACHE_PATH: str = os.getenv(
            "NEARBY_CACHE_PATH",
            os.path.join(os.path.expanduser("~"), ".cache", "nearby", "http_cache.sqlite"),
        )
        self.LOG_LEVEL: str = os.getenv("NEARBY_LOG_LEVEL", "INFO").upper()
        self.DEFAULT_LAT: Optional[float] = _as_float(os.getenv("NEARBY_DEFAULT_LAT"), None)
        self.DEFAULT_LON: Optional[float] = _as_float(os.getenv("NEARBY_DEFAULT_LON"), None)
        self.IMPERIAL_UNITS: bool = _as_bool(os.getenv("NEARBY_IMPERIAL_UNITS"), False)
        # Comma-separated; empty disables CORS
        self.CORS_ORIGINS: list[str] = _as_list(os.getenv("NEARBY_CORS_ORIGINS"))


settings = Settings()
