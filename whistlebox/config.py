import logging
import os
from typing import Optional

from pydantic import BaseModel

PUBLIC_KEY_PATH = "/api/public-key"
SUBMIT_PATH = "/api/submit"
HEALTH_PATH = "/api/health"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    backend_url: str = "http://127.0.0.1:8000"
    request_timeout: Optional[float] = 10.0
    # Base64 reviewer public key. The server only ever serves it.
    admin_public_key: Optional[str] = None
    max_file_bytes: int = 2 * 1024 * 1024
    retention_days: int = 90
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = float(os.environ.get("WHISTLEBOX_REQUEST_TIMEOUT", "10") or 0)
        return cls(
            backend_url=os.environ.get("WHISTLEBOX_BACKEND_URL", "http://127.0.0.1:8000"),
            # 0 leaves the timeout to requests' default behaviour
            request_timeout=timeout if timeout > 0 else None,
            admin_public_key=os.environ.get("ADMIN_ENCRYPTION_PUBLIC_KEY") or None,
            max_file_bytes=int(os.environ.get("WHISTLEBOX_MAX_FILE_BYTES", str(2 * 1024 * 1024))),
            retention_days=int(os.environ.get("WHISTLEBOX_RETENTION_DAYS", "90")),
            log_level=os.environ.get("WHISTLEBOX_LOG_LEVEL", "INFO"),
        )

    @property
    def public_key_url(self) -> str:
        return self.backend_url.rstrip("/") + PUBLIC_KEY_PATH

    @property
    def submit_url(self) -> str:
        return self.backend_url.rstrip("/") + SUBMIT_PATH


def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
