"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``VRSCENE_``)."""

    model_config = SettingsConfigDict(
        env_prefix="VRSCENE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Default bind address for Scene.serve()
    host: str = "127.0.0.1"
    port: int = 8080

    log_level: str = "INFO"
    log_json: bool = False

    # Template used when a Scene does not name one
    default_template: str = "empty"

    # Spaces per nesting level in rendered entity markup
    indent_width: int = 2

    startup_timeout_s: float = 5.0
    shutdown_timeout_s: float = 5.0

    # Directory local files are served from; the working directory when unset
    serve_root: Optional[str] = None

    @property
    def indent(self) -> str:
        """Return the indentation unit for one nesting level."""
        return " " * self.indent_width


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
