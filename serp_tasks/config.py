from pydantic import BaseModel
import os

class Settings(BaseModel):
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", 5000))
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    dataforseo_login: str = os.getenv("DATAFORSEO_LOGIN", "")
    dataforseo_password: str = os.getenv("DATAFORSEO_PASSWORD", "")
    dataforseo_base_url: str = os.getenv("DATAFORSEO_BASE_URL", "https://api.dataforseo.com")
    provider_timeout_seconds: float = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", 30))
    postback_url: str | None = os.getenv("POSTBACK_URL") or None
    tasks_page_size: int = int(os.getenv("TASKS_PAGE_SIZE", 10))
    search_page_size: int = int(os.getenv("SEARCH_PAGE_SIZE", 2))
    rate_limit_window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 10))
    rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", 5))
    max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", 2 * 1024 * 1024))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
