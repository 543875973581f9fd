"""Configuration management for fortum-fetch."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

from ..exceptions import ConfigError


DEFAULT_BASE_URL: str = "https://web.fortum.fi"
DEFAULT_TIME_ZONE: str = "Europe/Helsinki"

# Login step bounds observed against My Fortum
DEFAULT_STEP_TIMEOUT_SECONDS: float = 10.0
DEFAULT_SETTLE_DELAY_SECONDS: float = 1.0
DEFAULT_TOKEN_ATTEMPTS: int = 99
DEFAULT_TOKEN_POLL_INTERVAL_SECONDS: float = 0.1
DEFAULT_TOKEN_STORAGE_KEY: str = "accessToken"

DEFAULT_METERING_FORMAT: str = (
    "{{.Time}},{{.CustomerId}}_{{.MeteringPointId}}_energy,{{.MeteringPointAddress}},"
    "customer {{.CustomerId}} energy for {{.MeteringPointId}} at {{.MeteringPointAddress}},"
    "{{.Energy}},kWh\n"
    "{{.Time}},{{.CustomerId}}_{{.MeteringPointId}}_cost,{{.MeteringPointAddress}},"
    "customer {{.CustomerId}} cost for {{.MeteringPointId}} at {{.MeteringPointAddress}},"
    "{{.Cost}},€\n"
)

# Searched in order when no explicit env file is given
DEFAULT_CONFIG_FILES: List[Path] = [
    Path(".env"),
    Path("~/.config/fortum_fetch").expanduser(),
    Path("~/.fortum_fetch").expanduser(),
]

_TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True)
class AuthSettings:
    """Settings for the browser login flow.

    Passed explicitly to the browser controller, authenticator and token
    extractor instead of being read from global state.
    """

    headless: bool = True
    step_timeout: float = DEFAULT_STEP_TIMEOUT_SECONDS
    settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS
    token_attempts: int = DEFAULT_TOKEN_ATTEMPTS
    token_poll_interval: float = DEFAULT_TOKEN_POLL_INTERVAL_SECONDS
    token_read_timeout: float = DEFAULT_STEP_TIMEOUT_SECONDS
    token_storage_key: str = DEFAULT_TOKEN_STORAGE_KEY

    def __post_init__(self):
        if self.step_timeout <= 0:
            raise ConfigError("step_timeout must be positive")
        if self.settle_delay < 0:
            raise ConfigError("settle_delay cannot be negative")
        if self.token_attempts < 1:
            raise ConfigError("token_attempts must be at least 1")
        if self.token_poll_interval < 0:
            raise ConfigError("token_poll_interval cannot be negative")
        if self.token_read_timeout <= 0:
            raise ConfigError("token_read_timeout must be positive")
        if not self.token_storage_key:
            raise ConfigError("token_storage_key cannot be empty")


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in _TRUE_VALUES


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self, env_file: Optional[str] = None):
        """Initialize configuration.

        Args:
            env_file: Path to a dotenv file (default: first existing of .env,
                ~/.config/fortum_fetch, ~/.fortum_fetch)
        """
        self.loaded_file: Optional[Path] = None
        if env_file:
            path = Path(env_file).expanduser()
            if not path.exists():
                raise ConfigError(f"Configuration file not found: {path}")
            load_dotenv(path)
            self.loaded_file = path
        else:
            for path in DEFAULT_CONFIG_FILES:
                if path.is_file():
                    load_dotenv(path)
                    self.loaded_file = path
                    break

    # My Fortum credentials
    @property
    def username(self) -> str:
        """My Fortum user to authenticate as."""
        return os.getenv("FORTUM_USER", "")

    @property
    def password(self) -> str:
        """Password for the My Fortum user."""
        return os.getenv("FORTUM_PASSWORD", "")

    @property
    def base_url(self) -> str:
        """My Fortum base URL."""
        return os.getenv("FORTUM_URL") or DEFAULT_BASE_URL

    @property
    def access_token(self) -> str:
        """Previously acquired access token (optional)."""
        return os.getenv("FORTUM_ACCESS_TOKEN", "")

    # Usage settings
    @property
    def metering_point_id(self) -> str:
        """Only include data for this metering point ID."""
        return os.getenv("FORTUM_METERING_POINT_ID") or os.getenv("FORUTM_METERING_POINT_ID", "")

    @property
    def time_zone(self) -> str:
        """Time zone used for consumption timestamps in the output."""
        return os.getenv("FORTUM_TZ") or DEFAULT_TIME_ZONE

    @property
    def metering_format(self) -> str:
        """Template for metering point output rows."""
        return os.getenv("FORTUM_OUTPUT_TEMPLATE") or DEFAULT_METERING_FORMAT

    # Browser settings
    @property
    def headless_mode(self) -> bool:
        """Run browser in headless mode (default: True)."""
        return _bool_env("FORTUM_HEADLESS", True)

    @property
    def debug(self) -> bool:
        """Enable debug logging."""
        return _bool_env("FORTUM_DEBUG", False)

    @property
    def step_timeout_seconds(self) -> float:
        return _float_env("FORTUM_STEP_TIMEOUT_SECONDS", DEFAULT_STEP_TIMEOUT_SECONDS)

    @property
    def settle_delay_seconds(self) -> float:
        return _float_env("FORTUM_SETTLE_DELAY_SECONDS", DEFAULT_SETTLE_DELAY_SECONDS)

    @property
    def token_attempts(self) -> int:
        return _int_env("FORTUM_TOKEN_ATTEMPTS", DEFAULT_TOKEN_ATTEMPTS)

    @property
    def token_poll_interval_seconds(self) -> float:
        return _float_env("FORTUM_TOKEN_POLL_INTERVAL_SECONDS", DEFAULT_TOKEN_POLL_INTERVAL_SECONDS)

    # HTTP settings
    @property
    def request_timeout_seconds(self) -> float:
        """Timeout for portal API requests."""
        return _float_env("REQUEST_TIMEOUT_SECONDS", 10.0)

    @property
    def max_retries(self) -> int:
        """Maximum number of attempts for retryable API requests."""
        return _int_env("MAX_RETRIES", 3)

    # Logging
    @property
    def log_level(self) -> str:
        """Logging level."""
        if self.debug:
            return "DEBUG"
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def log_dir(self) -> Optional[Path]:
        """Directory for component log files (optional)."""
        path_str = os.getenv("LOG_DIR")
        if not path_str:
            return None
        return Path(path_str)

    def auth_settings(self, headless: Optional[bool] = None) -> AuthSettings:
        """Build login flow settings.

        Args:
            headless: Override for FORTUM_HEADLESS

        Returns:
            AuthSettings: Settings for the browser login flow

        Raises:
            ConfigError: If a numeric setting is invalid
        """
        step_timeout = self.step_timeout_seconds
        return AuthSettings(
            headless=self.headless_mode if headless is None else headless,
            step_timeout=step_timeout,
            settle_delay=self.settle_delay_seconds,
            token_attempts=self.token_attempts,
            token_poll_interval=self.token_poll_interval_seconds,
            token_read_timeout=step_timeout,
        )

    def zone_info(self, name: Optional[str] = None) -> ZoneInfo:
        """Resolve a time zone name.

        Args:
            name: IANA time zone name (default: FORTUM_TZ)

        Raises:
            ConfigError: If the time zone is unknown
        """
        name = name or self.time_zone
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown time zone: {name}") from None
