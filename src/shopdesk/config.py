"""Runtime configuration for shopdesk."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_URL = "http://localhost:3000"
# Can be overridden via SHOPDESK_DATA_DIR environment variable
DEFAULT_DATA_DIR = Path(__file__).parent.parent.parent / "data"

USERS_COLLECTION = "users"
PRODUCTS_COLLECTION = "cards"


@dataclass
class Settings:
    """Settings resolved from the environment."""

    api_url: str = DEFAULT_API_URL
    data_dir: Path = DEFAULT_DATA_DIR
    http_timeout: float | None = None  # None disables the client-side timeout
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = os.environ.get("SHOPDESK_HTTP_TIMEOUT")
        return cls(
            api_url=os.environ.get("SHOPDESK_API_URL", DEFAULT_API_URL).rstrip("/"),
            data_dir=Path(os.environ.get("SHOPDESK_DATA_DIR", DEFAULT_DATA_DIR)),
            http_timeout=float(timeout) if timeout else None,
            log_level=os.environ.get("SHOPDESK_LOG_LEVEL", "WARNING").upper(),
        )
