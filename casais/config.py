from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = "casais-api"
    version: str = "0.1.0"
    database_url: str = os.getenv("DATABASE_URL", os.getenv("DB_URL", ""))
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", os.getenv("PORT", "2000")))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    jwt_secret: str = os.getenv("JWT_SECRET", os.getenv("SECRET", "dev-secret-change-me"))
    jwt_issuer: str = os.getenv("JWT_ISSUER", "casais.api")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "86400"))
    rate_limit_requests: int = int(os.getenv("RATE_LIMIT_REQUESTS", "20"))
    rate_limit_window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    rate_limit_backend: str = os.getenv("RATE_LIMIT_BACKEND", "memory").lower()
    redis_url: str = os.getenv("REDIS_URL", "")
    media_backend: str = os.getenv("MEDIA_BACKEND", "s3").lower()
    media_bucket: str = os.getenv("MEDIA_BUCKET", "")
    media_region: str = os.getenv("MEDIA_REGION", "")
    media_endpoint: str = os.getenv("MEDIA_ENDPOINT", "")
    media_access_key_id: str = os.getenv("MEDIA_ACCESS_KEY_ID", "")
    media_secret_access_key: str = os.getenv("MEDIA_SECRET_ACCESS_KEY", "")
    media_public_base_url: str = os.getenv("MEDIA_PUBLIC_BASE_URL", "")
    media_folder: str = os.getenv("MEDIA_FOLDER", "casais_app")

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
