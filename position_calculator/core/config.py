from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

# Fallback stop/target distance from entry when no price or USD amount is given.
DEFAULT_PRICE_OFFSET_PCT = 0.05

# Load environment variables from .env if present
load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    app_env: str = Field("development", env="APP_ENV")
    app_host: str = Field("127.0.0.1", env="APP_HOST")
    app_port: int = Field(8000, env="APP_PORT")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # Values used when the caller resets the form or omits required inputs.
    default_account_size: float = Field(10000.0, gt=0, env="DEFAULT_ACCOUNT_SIZE")
    default_leverage: float = Field(10.0, gt=0, env="DEFAULT_LEVERAGE")
    default_entry_price: float = Field(50000.0, gt=0, env="DEFAULT_ENTRY_PRICE")
    default_position_type: str = Field("long", env="DEFAULT_POSITION_TYPE")
    default_price_offset_pct: float = Field(DEFAULT_PRICE_OFFSET_PCT, gt=0, lt=1, env="DEFAULT_PRICE_OFFSET_PCT")

    class Config:
        env_file = ENV_PATH
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def get_log_level(default: Optional[str] = None) -> str:
    """Convenience accessor for log level with optional override."""
    settings = get_settings()
    return settings.log_level or (default or "INFO")
