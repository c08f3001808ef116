import os
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    SECRET_KEY: str = "change-this-secret"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False

    DEFAULT_PER_PAGE: int = 15
    MAX_PER_PAGE: int = 100

    TEMPLATES_DIR: str = os.path.join(_PACKAGE_DIR, "templates")
    INERTIA_ROOT_TEMPLATE: str = "app.html"
    INERTIA_VERSION: str = "1"


settings = Settings()
