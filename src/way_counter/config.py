"""Application configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import schema


class Settings(BaseSettings):
    """
    Settings loaded from ``WAY_COUNTER_*`` environment variables or ``.env``.

    Leave ``aws_endpoint_url`` unset to talk to AWS; point it at DynamoDB
    Local (e.g. http://localhost:8000) for development.
    """

    model_config = SettingsConfigDict(
        env_prefix="WAY_COUNTER_",
        env_file=".env",
        extra="ignore",
    )

    # DynamoDB
    table_name: str = schema.DEFAULT_TABLE_NAME
    aws_endpoint_url: str | None = None
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    # Counters
    max_value: int = Field(default=schema.DEFAULT_MAX_VALUE, ge=0)

    # Files
    reference_file: str | None = None
    locations_file: str = "locations.json"
    static_dir: str = "public"

    # API
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Load settings from the current environment."""
    return Settings()
