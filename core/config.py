from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./workshop.db"  # Default to SQLite

    # "sql" keeps records in DATABASE_URL, "local" keeps JSON documents on disk
    STORAGE_BACKEND: Literal["sql", "local"] = "sql"
    LOCAL_STORAGE_DIR: str = "./data"

    RUN_MIGRATIONS: bool = True
    LOG_LEVEL: str = "INFO"

    # Seconds to wait for a ticket / spare part lock before giving up
    LOCK_TIMEOUT_SECONDS: float = 10.0
    STRICT_STATUS_TRANSITIONS: bool = False

    # Dashboard cost estimation
    PARTS_COST_RATIO: float = 0.7
    LABOR_COST_RATIO: float = 0.5

    LOW_STOCK_CHECK_ENABLED: bool = True
    LOW_STOCK_CHECK_HOUR: int = 8

    DEFAULT_WORKSHOP_NAME: str = "Phone Repair Workshop"
    DEFAULT_THANK_YOU_MESSAGE: str = "Thank you for your trust, we hope you enjoyed our service"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


settings = Settings()
