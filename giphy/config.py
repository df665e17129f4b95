"""Configuration management using pydantic-settings.

Settings are read from ``GIPHY_*`` environment variables (and an optional
``.env`` file); nothing is loaded until ``get_settings()`` is called.
The API key is a SecretStr so it never ends up in logs or reprs.
"""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Public demo key published by Giphy for development use
PUBLIC_API_KEY = "dc6zaTOxFJmzC"


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Every field is optional: a missing API key falls back to the public
    demo key, everything else has a sensible default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    giphy_api_key: SecretStr | None = Field(
        default=None,
        description="Giphy API key (optional, defaults to the public demo key)",
    )

    giphy_request_timeout: float = Field(
        default=15.0,
        description="Timeout in seconds applied by the default HTTP transport",
        gt=0,
    )

    giphy_default_throttle_ms: int = Field(
        default=150,
        description="Delay between successive page fetches of one stream",
        ge=0,
    )

    giphy_log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    giphy_environment: str = Field(
        default="development",
        description="Environment name (development, production)",
    )

    @field_validator("giphy_api_key", mode="before")
    @classmethod
    def blank_api_key_is_unset(cls, v: object) -> object:
        """Treat a blank or whitespace-only key as absent."""
        if isinstance(v, SecretStr):
            v = v.get_secret_value()
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("giphy_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"giphy_log_level must be one of {allowed}")
        return v_upper

    @field_validator("giphy_environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is development or production."""
        allowed = {"development", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"giphy_environment must be one of {allowed}")
        return v_lower

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.giphy_environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.giphy_environment == "production"

    @property
    def has_api_key(self) -> bool:
        """Check if an explicit API key is configured."""
        return self.giphy_api_key is not None

    def api_key_or_default(self) -> str:
        """Return the configured API key, or the public demo key."""
        if self.giphy_api_key is None:
            return PUBLIC_API_KEY
        return self.giphy_api_key.get_secret_value()

    def get_safe_dict(self) -> dict[str, str | int | float | None]:
        """Get configuration as dict with sensitive values masked.

        Returns:
            Dictionary with SecretStr values shown as '***'
        """
        result: dict[str, str | int | float | None] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)

            if isinstance(value, SecretStr):
                result[field_name] = "***"
            else:
                result[field_name] = value

        return result


def get_settings() -> Settings:
    """Load settings from the current process environment."""
    return Settings()

