"""Application configuration for the submission gateway.

Loads settings from .env file with REVIEWGATE_ prefix.
Validates the review backend URL up front so a typo fails at startup, not on the first submission.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """reviewgate application settings.

    All settings are loaded from environment variables with REVIEWGATE_ prefix,
    or from a .env file in the working directory.
    """

    api_base_url: str = "http://localhost:3001/api"
    api_timeout_seconds: float = 30.0
    cors_origins: list[str] = ["http://localhost:3000"]
    debug: bool = False
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_prefix": "REVIEWGATE_",
    }

    @model_validator(mode="after")
    def validate_api_base_url(self) -> "Settings":
        """Reject backend URLs that are not http(s)."""
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ValueError(
                "Backend URL must start with http:// or https://. "
                f"Got: {self.api_base_url!r}"
            )
        self.api_base_url = self.api_base_url.rstrip("/")
        return self


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Raises a clear error message if the environment holds an invalid value.
    """
    try:
        return Settings()
    except Exception as e:
        raise RuntimeError(
            f"Failed to load reviewgate settings: {e}\n"
            "Check REVIEWGATE_* environment variables or the .env file, "
            "in particular REVIEWGATE_API_BASE_URL."
        ) from e
