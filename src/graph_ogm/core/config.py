"""Configuration management."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Connection
    uri: str = Field(default="bolt://localhost:7687", description="Bolt or neo4j:// connection URI")
    username: str = "neo4j"
    password: SecretStr = SecretStr("password")
    database: str = "neo4j"
    enterprise: bool = Field(default=False, description="Enables enterprise-only schema constraints")

    # Driver tuning
    max_connection_pool_size: int = 50
    max_connection_lifetime: int = 3600
    connection_acquisition_timeout: float = 60.0

    # Logging
    log_level: str = "INFO"
    logfire_enabled: bool = False

    model_config = SettingsConfigDict(
        env_prefix="NEO4J_",
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
    )


def get_settings() -> Settings:
    """Read settings from the environment and `.env` file."""
    return Settings()
