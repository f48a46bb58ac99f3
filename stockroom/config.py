# stockroom/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./stockroom.db"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # Threshold given to products created without an explicit one.
    # Queries always read the per-product min_stock_level column.
    DEFAULT_MIN_STOCK_LEVEL: int = 10

    RECENT_MOVEMENTS_LIMIT: int = 50

    # Advertised to clients typing into a live search box
    SEARCH_DEBOUNCE_MS: int = 300

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
