from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for writing system_settings under RLS

    # Google Apps Script upstream
    gas_url: str = ""
    gas_timeout: float = 30.0  # seconds
    proxy_mount_prefix: str = "/.netlify/functions/api"

    # Permissions
    permissions_source: str = "static"  # static | settings_store
    default_role: str = "staff"  # used when a user has no user_roles row

    # App
    app_name: str = "complaints-gateway"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def use_settings_store(self) -> bool:
        return self.permissions_source == "settings_store"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
