"""Configuration management for the prepaid card ledger."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment name")
    service_name: str = Field(default="prepaid-card-ledger", description="Service name")

    currency: str = Field(default="GBP", description="Single currency every card is held in")

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Origins allowed by the CORS middleware"
    )


settings = Settings()
