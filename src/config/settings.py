"""Configuration settings for the risk feed service."""

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv


# Front-end origins allowed to call the API from a browser
DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "https://guardian360.co.za",
    "https://www.guardian360.co.za",
    "https://risk.guardian360.co.za",
)

DEFAULT_PORT = 8080
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
DEFAULT_RATE_LIMIT_PER_MINUTE = 120
DEFAULT_USER_AGENT = "Guardian360RiskFeed/1.0"
DEFAULT_RELIEFWEB_APPNAME = "guardian360"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass(frozen=True)
class Settings:
    """Configuration settings for the risk feed service.

    Built once at process start and shared read-only by every request.

    Attributes:
        port: TCP port the HTTP server listens on
        cors_origins: Browser origins allowed by the CORS policy
        request_timeout_seconds: Hard deadline for each upstream call
        rate_limit_per_minute: Requests allowed per client per minute (0 disables)
        user_agent: User-Agent header sent to upstreams
        reliefweb_appname: Application name ReliefWeb requires on every query
    """

    port: int = DEFAULT_PORT
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE
    user_agent: str = DEFAULT_USER_AGENT
    reliefweb_appname: str = DEFAULT_RELIEFWEB_APPNAME

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        errors: list[str] = []

        if self.port < 1 or self.port > 65535:
            errors.append("port must be between 1 and 65535")

        if self.request_timeout_seconds <= 0.0:
            errors.append("request_timeout_seconds must be positive")

        if self.rate_limit_per_minute < 0:
            errors.append("rate_limit_per_minute must be non-negative")

        if not self.reliefweb_appname.strip():
            errors.append("reliefweb_appname must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))


def _parse_float(value: str | None, default: float) -> float:
    """Parse a string to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    """Parse a string to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_origins(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated origin list, dropping blanks."""
    if value is None:
        return DEFAULT_CORS_ORIGINS
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


def load_settings(env_path: str | Path | None = None, validate: bool = True) -> Settings:
    """Load settings from environment variables and .env file.

    Args:
        env_path: Optional path to .env file. If None, searches for .env
                  in current directory and parent directories.
        validate: If True, validate settings after loading.

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ConfigurationError: If validate=True and configuration is invalid.
    """
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    settings = Settings(
        port=_parse_int(os.getenv("PORT"), DEFAULT_PORT),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGIN")),
        request_timeout_seconds=_parse_float(
            os.getenv("REQUEST_TIMEOUT_SECONDS"), DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
        rate_limit_per_minute=_parse_int(
            os.getenv("RATE_LIMIT_PER_MINUTE"), DEFAULT_RATE_LIMIT_PER_MINUTE
        ),
        user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        reliefweb_appname=os.getenv("RELIEFWEB_APPNAME", DEFAULT_RELIEFWEB_APPNAME),
    )

    if validate:
        settings.validate()

    return settings
