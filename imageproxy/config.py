#config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "Image Optimizer"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 3000))

    # CORS Settings (comma-separated, GET only)
    ALLOWED_ORIGINS: str = "*"
    CORS_MAX_AGE: int = 86400

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Cache Settings
    CACHE_BACKEND: str = "redis"  # redis | memory
    REDIS_URL: str = ""
    CACHE_TTL_SECONDS: int = 60 * 60 * 24 * 7  # 7 days
    CACHE_CONNECT_TIMEOUT: float = 1.0
    # When the transform inflates the payload the original is served; cache that too
    CACHE_SERVED_PAYLOAD: bool = False
    SINGLE_FLIGHT_ENABLED: bool = False

    # Transform Settings
    DEFAULT_QUALITY: int = 75
    OUTPUT_CONTENT_TYPE: str = "image/webp"

    # Remote fetch
    FETCH_TIMEOUT: float = 30.0
    FETCH_USER_AGENT: str = "Image-Optimizer-Service/1.0.0"

    # Cloudflare R2 (S3 compatible) object store
    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_BUCKET_NAME: str = ""
    R2_REGION: str = "auto"
    R2_ENDPOINT_URL: str = ""

    # Umami analytics
    UMAMI_HOSTNAME: str = ""
    UMAMI_WEBSITE_ID: str = ""
    UMAMI_USER: str = ""
    UMAMI_PASSWORD: str = ""
    UMAMI_TOKEN: str = ""

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def r2_configured(self) -> bool:
        return all([
            self.R2_ACCOUNT_ID or self.R2_ENDPOINT_URL,
            self.R2_ACCESS_KEY_ID,
            self.R2_SECRET_ACCESS_KEY,
            self.R2_BUCKET_NAME,
            self.R2_REGION,
        ])

    @property
    def r2_endpoint(self) -> Optional[str]:
        if self.R2_ENDPOINT_URL:
            return self.R2_ENDPOINT_URL
        if self.R2_ACCOUNT_ID:
            return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
        return None

    @property
    def umami_configured(self) -> bool:
        return bool(self.UMAMI_HOSTNAME and self.UMAMI_WEBSITE_ID)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()
