"""Configuration management for palaver."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    # State machine
    entry_state: str = Field(default="entry", description="State assigned to brand-new sessions")
    terminal_state: str = Field(default="die", description="Reserved marker that ends the conversation")
    max_transitions: int = Field(default=25, ge=1, description="Maximum state hops in one turn")

    # Rendering
    default_locale: str = Field(default="en-US", description="Locale used when the event carries none")
    error_statement: str = Field(
        default="Sorry, something went wrong.",
        description="Statement spoken when a turn fails without an error hook reply",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    model_config = SettingsConfigDict(
        env_prefix="PALAVER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings(**overrides: object) -> Settings:
    """Build settings from the environment, `.env` and explicit overrides."""

    return Settings(**overrides)
