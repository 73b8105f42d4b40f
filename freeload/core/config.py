import os
from typing import List, Optional


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    # Listener
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "7433"))

    # Outbound requests
    PROXY_URL: Optional[str] = os.getenv("PROXY_URL") or None
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    USER_AGENT: str = os.getenv("USER_AGENT", "freeload/1.0")

    # Aggregate requests
    JSON_ROOT: str = os.getenv("JSON_ROOT", "/json")
    # Seconds to wait for origins before answering with timeouts
    ORIGIN_TIMEOUT: float = float(os.getenv("ORIGIN_TIMEOUT", "0.5"))
    # 0 leaves the fan-out unbounded
    MAX_CONCURRENCY: int = int(os.getenv("MAX_CONCURRENCY", "0"))
    CANCEL_ON_TIMEOUT: bool = _flag("CANCEL_ON_TIMEOUT", "0")

    # Response decorators
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    GZIP_MINIMUM_SIZE: int = int(os.getenv("GZIP_MINIMUM_SIZE", "0"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def max_concurrency(self) -> Optional[int]:
        return self.MAX_CONCURRENCY if self.MAX_CONCURRENCY > 0 else None

settings = Settings()
