import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="FILESDK_", extra="ignore")

    file_api_url: str = ""
    header_authorization: str = ""

    bucket_file_path: str = ""
    bucket_type: str = ""

    http_timeout: float = 30.0
    max_workers: int = 4
    name_max_attempts: int = 25
    cleanup_on_failure: bool = False

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def api_base_url(self) -> str:
        return self.file_api_url.rstrip("/")


settings = Settings()
