"""Dashboard settings, read from the environment (and `.env` when present)."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    admin_api_url: str = "http://localhost:5000"
    database_url: str = "sqlite:///./review_admin.db"

    # Branches without an area are grouped under this region
    default_area: str = "Chennai"
    dashboard_timezone: str = "Asia/Kolkata"

    analytics_page_size: int = 20
    reviews_fetch_limit: int = 100

    session_cookie_name: str = "admin_session"
    cookie_secure: bool = False
    cors_origins: str = "http://localhost:3000"

    login_path: str = "/login"
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
