# cwlatency/config.py
from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # AWS / CloudWatch
    AWS_REGION: str = "us-east-1"
    CLOUDWATCH_NAMESPACE: str = "cwlatency"
    CLOUDWATCH_MAX_RETRIES: int = 5
    CLOUDWATCH_CONNECT_TIMEOUT: float = 3.0
    CLOUDWATCH_READ_TIMEOUT: float = 10.0

    # Middleware
    LATENCY_METRIC_NAME: str = "Latency"
    # Comma-separated paths or URLs skipped by the middleware
    EXCLUDED_URLS: str = ""

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # read .env and ignore any extra keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def excluded_urls(self) -> List[str]:
        return [u.strip() for u in self.EXCLUDED_URLS.split(",") if u.strip()]

settings = Settings()
