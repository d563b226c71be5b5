from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.lessonhub.runtime.config.config_data import ConfigData


class EnvironmentVariables(BaseSettings):
    """Simple primitive values loaded from environment variables and .env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] | None = Field(
        default=None, validation_alias="APP_ENVIRONMENT"
    )
    config_file: str = Field(default="config.yaml", validation_alias="CONFIG_FILE")
    log_level: str | None = Field(default=None)

    database_url: str | None = Field(default=None)

    # Secrets
    session_signing_secret: str | None = Field(default=None)
    bootstrap_admin_email: str | None = Field(default=None)

    def apply_to(self, config: ConfigData) -> ConfigData:
        """Return a copy of `config` with every environment value that is set applied."""
        app_updates = {
            key: value
            for key, value in (
                ("environment", self.environment),
                ("session_signing_secret", self.session_signing_secret),
                ("bootstrap_admin_email", self.bootstrap_admin_email),
            )
            if value is not None
        }
        updates = {}
        if app_updates:
            updates["app"] = config.app.model_copy(update=app_updates)
        if self.database_url:
            updates["database"] = config.database.model_copy(
                update={"url": self.database_url}
            )
        if self.log_level:
            updates["logging"] = config.logging.model_copy(
                update={"level": self.log_level}
            )
        return config.model_copy(update=updates)
