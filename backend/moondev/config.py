from functools import lru_cache
from typing import List, Optional
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./moondev.db"

    # Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Public URL of this service, also the only host profile pictures load from
    backend_url: str = "http://localhost:8585"

    # Addresses that register as evaluators, everyone else is a developer
    evaluator_emails: List[str] = []

    # Mail service
    mail_api_key: Optional[str] = None
    mail_api_url: str = "https://api.resend.com"
    mail_from: str = "MoonDev <onboarding@moondev.dev>"

    # Source code downloads
    download_dir: str = "./downloads"

    log_level: str = "INFO"

    @property
    def image_hosts(self) -> List[str]:
        host = urlparse(self.backend_url).hostname
        return [host] if host else []

    @property
    def port(self) -> int:
        return urlparse(self.backend_url).port or 8585


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
