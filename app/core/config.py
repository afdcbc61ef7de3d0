from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Pharmacy backend settings, read from the environment and `.env`.

    Every field can be overridden by the upper-cased env var of the same
    name (e.g. DATABASE_URL, SECRET_KEY).
    """

    app_env: str = "local"
    app_name: str = "Pharmacy Management Backend"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Auth tokens
    secret_key: str = "changeme"  # override in .env
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Database
    database_url: str = "sqlite:///./pharmacy.db"
    sql_echo: bool = False
    auto_create_tables: bool = True

    # Inventory
    expiring_window_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
