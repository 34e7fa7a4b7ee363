import logging
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WORKFLOW_", env_file=".env", extra="ignore")

    app_env: str = "dev"
    database_url: str = "sqlite:///./workflows.db"
    log_level: str = "INFO"
    # Bearer tokens must start with this prefix (mock auth)
    token_prefix: str = "mock-"
    persistence_base_url: str = "http://localhost:8000"
    persistence_timeout: float = 10.0
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]


settings = Settings()  # reads from env


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
