"""Configuration settings for the Tiger CLI."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_KEYRING_SERVICE,
    DEFAULT_PGPASS_FILE,
    ENV_API_BASE_URL,
    ENV_API_KEY,
    ENV_DEBUG,
    ENV_KEYRING_SERVICE,
    ENV_PASSWORD_STORAGE,
    ENV_PGPASSFILE,
    ENV_PROJECT_ID,
    ENV_SERVICE_ID,
)
from ..secrets.constants import PasswordStorageMode


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This uses Pydantic Settings for environment variable loading. Only the CLI
    layer reads these values; everything below it receives what it needs as
    arguments.
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # API settings
    API_BASE_URL: str = Field(DEFAULT_API_BASE_URL, validation_alias=ENV_API_BASE_URL)
    API_KEY: str = Field("", validation_alias=ENV_API_KEY)

    # Default service selection
    PROJECT_ID: str = Field("", validation_alias=ENV_PROJECT_ID)
    SERVICE_ID: str = Field("", validation_alias=ENV_SERVICE_ID)

    # Password storage
    PASSWORD_STORAGE: PasswordStorageMode = Field(
        PasswordStorageMode.KEYRING, validation_alias=ENV_PASSWORD_STORAGE
    )
    KEYRING_SERVICE_NAME: str = Field(
        DEFAULT_KEYRING_SERVICE, validation_alias=ENV_KEYRING_SERVICE
    )
    PGPASS_FILE: str = Field(DEFAULT_PGPASS_FILE, validation_alias=ENV_PGPASSFILE)

    # General settings
    DEBUG: bool = Field(
        False, validation_alias=AliasChoices(ENV_DEBUG, "TIGER_VERBOSE")
    )


# Create a singleton settings instance
settings = Settings()
